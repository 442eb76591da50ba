"""
User Management API Endpoints

REST API endpoints for user CRUD operations.
Every response is a JSON envelope: {success, data | error, ...}.
"""
import logging
import re
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel, ConfigDict
from userhub.modules.errors import ClientInputError, NotFoundError
from userhub.modules.users.services.user_service import UserService

logger = logging.getLogger("userhub.users.api")

router = APIRouter(prefix="/users", tags=["users"])

DEFAULT_LIMIT = 50
INTEGER_PATTERN = re.compile(r"-?[0-9]+")


# Request Models
class UserRequest(BaseModel):
    """
    Fields a create or update body may carry.

    Values stay untyped here so validate_user_data can report the first
    violation with its own message; unknown keys are dropped.
    """
    model_config = ConfigDict(extra="ignore")

    name: Any = None
    email: Any = None
    role: Any = None


def submitted_fields(payload: Any) -> Any:
    """The fields the caller actually sent. Non-object bodies pass through for validation."""
    if not isinstance(payload, dict):
        return payload
    return UserRequest.model_validate(payload).model_dump(exclude_unset=True)


def get_user_service(request: Request) -> UserService:
    """The service instance built at startup and attached to the app."""
    return request.app.state.user_service


def parse_user_id(raw: str) -> int:
    # Plain decimal digits only; int() alone would take "1_0", "+3" or " 3 "
    if raw is None or not INTEGER_PATTERN.fullmatch(raw):
        raise ClientInputError("Invalid user ID format")
    return int(raw)


def parse_limit(raw: Optional[str]) -> int:
    if raw is None or raw == "":
        return DEFAULT_LIMIT
    if not INTEGER_PATTERN.fullmatch(raw):
        raise ClientInputError("Invalid limit parameter")
    limit = int(raw)
    if limit <= 0:
        raise ClientInputError("Invalid limit parameter")
    return limit


@router.get("")
def list_users(
    role: Optional[str] = Query(None, description="Filter by role"),
    limit: Optional[str] = Query(None, description=f"Maximum users returned (default {DEFAULT_LIMIT})"),
    service: UserService = Depends(get_user_service)
):
    """
    List users in creation order.

    `total` counts users after the role filter, `returned` after the limit.
    """
    max_results = parse_limit(limit)
    logger.debug(f"[user_endpoints.list_users] role={role}, limit={max_results}")

    users, total = service.list_users(role_filter=role or None, limit=max_results)
    return {
        "success": True,
        "data": [user.to_dict() for user in users],
        "total": total,
        "returned": len(users)
    }


@router.get("/{user_id}")
def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    """Get user details by ID."""
    uid = parse_user_id(user_id)
    logger.debug(f"[user_endpoints.get_user] user_id={uid}")

    user = service.get_user(uid)
    if not user:
        raise NotFoundError("User not found")
    return {"success": True, "data": user.to_dict()}


@router.post("", status_code=201)
def create_user(
    payload: Any = Body(None),
    service: UserService = Depends(get_user_service)
):
    """
    Create a new user.

    400 on validation failure, 409 when the email is taken.
    """
    user = service.create_user(submitted_fields(payload))
    return {
        "success": True,
        "message": "User created successfully",
        "data": user.to_dict()
    }


@router.put("/{user_id}")
def update_user(
    user_id: str,
    payload: Any = Body(None),
    service: UserService = Depends(get_user_service)
):
    """Update the supplied fields of a user."""
    uid = parse_user_id(user_id)
    logger.debug(f"[user_endpoints.update_user] user_id={uid}")

    user = service.update_user(uid, submitted_fields(payload))
    if not user:
        raise NotFoundError("User not found")
    return {
        "success": True,
        "message": "User updated successfully",
        "data": user.to_dict()
    }


@router.delete("/{user_id}")
def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    """Delete a user. Deleting an id twice yields 404 the second time."""
    uid = parse_user_id(user_id)
    logger.debug(f"[user_endpoints.delete_user] user_id={uid}")

    user = service.delete_user(uid)
    if not user:
        raise NotFoundError("User not found")
    return {
        "success": True,
        "message": "User deleted successfully",
        "data": user.to_dict()
    }
