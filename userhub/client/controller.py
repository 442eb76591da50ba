"""
User Management Controller

Headless UI controller: holds the view state of the user management screen
(table, filter, modals, toasts, health indicator) and turns user intents into
API client calls. A front end renders from the public attributes and calls
the intent methods; nothing here touches a real widget toolkit.
"""
import html
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from userhub.client.api_client import ApiClient
from userhub.client.errors import ApiError
from userhub.modules.users.domain.user import User, DEFAULT_ROLE
from userhub.modules.users.domain.validation import validate_user_data

logger = logging.getLogger("userhub.client.controller")

ROLE_LABELS = {"admin": "Administrator", "user": "User"}
TOAST_DURATION = 5.0


def empty_form() -> Dict[str, str]:
    return {"name": "", "email": "", "role": DEFAULT_ROLE}


class ModalMode(str, Enum):
    CLOSED = "closed"
    NEW = "new"
    EDIT = "edit"


@dataclass
class UserModal:
    """Create/edit form state."""
    mode: ModalMode = ModalMode.CLOSED
    editing_user_id: Optional[int] = None
    values: Dict[str, str] = field(default_factory=empty_form)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.mode is not ModalMode.CLOSED

    @property
    def title(self) -> str:
        return "Edit user" if self.mode is ModalMode.EDIT else "New user"


@dataclass
class ConfirmModal:
    """Delete confirmation state."""
    target_id: Optional[int] = None
    target_name: str = ""
    target_email: str = ""

    @property
    def is_open(self) -> bool:
        return self.target_id is not None


@dataclass
class Toast:
    kind: str
    title: str
    message: str
    expires_at: float


@dataclass
class HealthStatus:
    online: Optional[bool] = None
    message: str = ""

    @property
    def label(self) -> str:
        if self.online is None:
            return "Checking API..."
        return "API online" if self.online else "API offline"


class UserManagementController:
    """Drives the user management screen from ApiClient results."""

    def __init__(self, api: ApiClient, clock: Callable[[], float] = time.monotonic):
        self.api = api
        self._clock = clock

        self.users: List[User] = []
        self.users_count = 0
        self.current_filter = ""
        self.is_loading = False
        self.is_submitting = False
        self.is_deleting = False
        self.error_message: Optional[str] = None
        self.health = HealthStatus()

        self.user_modal = UserModal()
        self.confirm_modal = ConfirmModal()
        self.toasts: List[Toast] = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def init(self) -> None:
        await self.check_api_health()
        await self.load_users()

    async def check_api_health(self) -> bool:
        try:
            await self.api.check_health()
            self.health = HealthStatus(online=True)
        except ApiError as e:
            self.health = HealthStatus(online=False, message=e.user_message())
        return bool(self.health.online)

    async def load_users(self) -> None:
        """Refresh the table. Ignored while a refresh is already running."""
        if self.is_loading:
            logger.debug("[UserManagementController.load_users] refresh already in flight")
            return

        self.is_loading = True
        self.error_message = None
        try:
            filters = {"role": self.current_filter} if self.current_filter else {}
            response = await self.api.get_users(filters)
            self.users = [User.from_dict(item) for item in response.get("data") or []]
            self.users_count = response.get("total") or len(self.users)
        except ApiError as e:
            logger.error(f"Error loading users: {e!r}")
            self.error_message = e.user_message()
            await self.check_api_health()
        finally:
            self.is_loading = False

    async def change_filter(self, role: Optional[str]) -> None:
        self.current_filter = role or ""
        await self.load_users()

    # ------------------------------------------------------------------
    # Create / edit modal
    # ------------------------------------------------------------------
    def show_user_modal(self, user: Optional[User] = None) -> None:
        if user is None:
            self.user_modal = UserModal(mode=ModalMode.NEW)
        else:
            self.user_modal = UserModal(
                mode=ModalMode.EDIT,
                editing_user_id=user.id,
                values={"name": user.name, "email": user.email, "role": user.role},
            )

    def hide_user_modal(self) -> None:
        self.user_modal.mode = ModalMode.CLOSED
        self.user_modal.editing_user_id = None

    async def edit_user(self, user_id: int) -> None:
        try:
            response = await self.api.get_user(user_id)
        except ApiError as e:
            logger.error(f"Error loading user {user_id}: {e!r}")
            self.show_toast("error", "Error", "Unable to load the user's data.")
            return
        self.show_user_modal(User.from_dict(response["data"]))

    def validate_field(self, name: str) -> bool:
        """Check one form field and record or clear its error."""
        value = (self.user_modal.values.get(name) or "").strip()
        if not value:
            message = "Name is required" if name == "name" else "Email is required"
        else:
            issue = validate_user_data({name: value}, partial=True)
            message = issue.message if issue else None

        if message:
            self.user_modal.errors[name] = message
            return False
        self.user_modal.errors.pop(name, None)
        return True

    def validate_form(self) -> bool:
        name_ok = self.validate_field("name")
        email_ok = self.validate_field("email")
        return name_ok and email_ok

    async def submit_form(self, values: Optional[Dict[str, str]] = None) -> bool:
        """
        Submit the open form. Returns True when the user was saved.

        A second submit while one is in flight is dropped, even from a
        reopened form.
        """
        modal = self.user_modal
        if not modal.is_open or self.is_submitting or self.is_loading:
            return False
        if values:
            modal.values.update(values)
        if not self.validate_form():
            return False

        user_data = {
            "name": modal.values["name"].strip(),
            "email": modal.values["email"].strip(),
            "role": modal.values.get("role") or DEFAULT_ROLE,
        }

        self.is_submitting = True
        try:
            if modal.editing_user_id is not None:
                await self.api.update_user(modal.editing_user_id, user_data)
                self.show_toast("success", "User updated", "The user was updated successfully.")
            else:
                await self.api.create_user(user_data)
                self.show_toast("success", "User created", "The new user was created successfully.")
        except ApiError as e:
            logger.error(f"Error saving user: {e!r}")
            if e.is_validation_error:
                self._show_form_errors(modal, e.details)
            else:
                self.show_toast("error", "Error", e.user_message())
            return False
        finally:
            self.is_submitting = False

        # The form may have been closed and reopened while the request ran
        if self.user_modal is modal:
            self.hide_user_modal()
        await self.load_users()
        return True

    def _show_form_errors(self, modal: UserModal, details: List[Dict[str, Any]]) -> None:
        for detail in details:
            if not isinstance(detail, dict):
                continue
            name = detail.get("field") or detail.get("param")
            message = detail.get("message") or detail.get("msg")
            if name in ("name", "email", "role") and message:
                modal.errors[name] = message

    # ------------------------------------------------------------------
    # Delete confirmation
    # ------------------------------------------------------------------
    def show_delete_confirm(self, user_id: int) -> bool:
        if self.is_deleting:
            return False
        user = next((u for u in self.users if u.id == user_id), None)
        if user is None:
            return False
        self.confirm_modal = ConfirmModal(target_id=user.id, target_name=user.name, target_email=user.email)
        return True

    def hide_confirm_modal(self) -> None:
        self.confirm_modal.target_id = None

    async def confirm_delete(self) -> bool:
        modal = self.confirm_modal
        if not modal.is_open or self.is_deleting:
            return False

        self.is_deleting = True
        try:
            await self.api.delete_user(modal.target_id)
        except ApiError as e:
            logger.error(f"Error deleting user {modal.target_id}: {e!r}")
            self.show_toast("error", "Error", e.user_message())
            return False
        finally:
            self.is_deleting = False

        self.show_toast("success", "User deleted", "The user was deleted successfully.")
        if self.confirm_modal is modal:
            self.hide_confirm_modal()
        await self.load_users()
        return True

    # ------------------------------------------------------------------
    # Keyboard and pointer
    # ------------------------------------------------------------------
    def press_escape(self) -> None:
        self.hide_user_modal()
        self.hide_confirm_modal()

    def backdrop_click(self, modal: str) -> None:
        if modal == "user":
            self.hide_user_modal()
        elif modal == "confirm":
            self.hide_confirm_modal()

    async def handle_key(self, key: str, ctrl: bool = False) -> None:
        """Escape closes modals, Ctrl+N opens a new form, Ctrl+R refreshes."""
        if key == "Escape":
            self.press_escape()
        elif ctrl and key.lower() == "n":
            self.show_user_modal()
        elif ctrl and key.lower() == "r":
            await self.load_users()

    # ------------------------------------------------------------------
    # Toasts
    # ------------------------------------------------------------------
    def show_toast(self, kind: str, title: str, message: str = "", duration: float = TOAST_DURATION) -> Toast:
        toast = Toast(kind=kind, title=title, message=message, expires_at=self._clock() + duration)
        self.toasts.append(toast)
        return toast

    def dismiss_toast(self, toast: Toast) -> None:
        if toast in self.toasts:
            self.toasts.remove(toast)

    def expire_toasts(self, now: Optional[float] = None) -> None:
        now = self._clock() if now is None else now
        self.toasts = [toast for toast in self.toasts if toast.expires_at > now]

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------
    @property
    def show_empty_state(self) -> bool:
        return not self.users and self.error_message is None and not self.is_loading

    def rows(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": user.id,
                "name": html.escape(user.name),
                "email": html.escape(user.email),
                "role": user.role,
                "role_label": ROLE_LABELS.get(user.role, user.role),
            }
            for user in self.users
        ]

    def users_count_label(self) -> str:
        if self.users_count == 0:
            return "No users"
        if self.users_count == 1:
            return "1 user"
        return f"{self.users_count} users"
