"""
User Domain Model

Pure data model representing a user entity.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

ROLES = ("user", "admin")
DEFAULT_ROLE = "user"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class User:
    """User domain model."""
    id: int
    name: str
    email: str
    role: str = DEFAULT_ROLE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Create User from a JSON envelope payload."""
        created_at = data.get("createdAt")
        updated_at = data.get("updatedAt")
        return cls(
            id=int(data["id"]),
            name=data["name"],
            email=data["email"],
            role=data.get("role", DEFAULT_ROLE),
            created_at=_parse_timestamp(created_at) if created_at else None,
            updated_at=_parse_timestamp(updated_at) if updated_at else None,
        )

    def to_dict(self) -> dict:
        """Convert User to its JSON representation."""
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }
        if self.created_at is not None:
            data["createdAt"] = format_timestamp(self.created_at)
        if self.updated_at is not None:
            data["updatedAt"] = format_timestamp(self.updated_at)
        return data

    def merge(self, patch: dict, updated_at: datetime) -> "User":
        """Return a copy with the fields present in patch applied."""
        changes = {key: patch[key] for key in ("name", "email", "role") if key in patch}
        return replace(self, updated_at=updated_at, **changes)


def _parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
