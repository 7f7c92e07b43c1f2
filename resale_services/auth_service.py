"""
resale_services.auth_service -- Login, password and account management.

Responsibility:
    Populate and clear the injected ``AuthSession``, change the current
    user's profile and password, and let admins list, create and
    (de)activate dashboard accounts.

Failure policy:
    Like the gateway, every failure is reported through the ``Notifier``
    and turned into a False / empty result. Password rules are checked
    locally before anything is sent.

Change-password flow:
    1. check-password with the current password (rejected -> stop)
    2. confirmation must equal the new password
    3. new password must satisfy the policy
    4. change-password
    5. log the session out so the user signs in again
"""

from __future__ import annotations

from typing import Any

from resale_kernel.domain.entities import User, UserRole, UserStatus
from resale_kernel.domain.session import AuthSession
from resale_kernel.domain.validation import require_valid_password
from resale_kernel.exceptions import (
    ApiError,
    AuthError,
    BackendError,
    MalformedResponseError,
)
from resale_kernel.logging_config import LogContext, get_logger
from resale_services import endpoints
from resale_services.access import ACCOUNT_MANAGE, require_permission
from resale_services.api_client import ApiClient
from resale_services.envelopes import unwrap_list, unwrap_record
from resale_services.gateway import MutationResult
from resale_services.notifications import LogNotifier, Notifier, Severity, log_api_failure

logger = get_logger("services.auth")

CANNOT_REACH_SERVER = "Cannot reach the server"


class AuthService:
    """Authentication and account operations against the backend."""

    def __init__(
        self,
        client: ApiClient,
        notifier: Notifier | None = None,
    ) -> None:
        self.client = client
        self.session: AuthSession = client.session
        self.notifier: Notifier = notifier or LogNotifier()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _report(self, method: str, path: str, exc: ApiError, fallback: str) -> str:
        log_api_failure(
            method=method, path=path, exc_code=exc.code,
            status_code=getattr(exc, "status_code", None),
        )
        if isinstance(exc, BackendError):
            message = exc.message
        elif isinstance(exc, MalformedResponseError):
            message = fallback
        else:
            message = CANNOT_REACH_SERVER
        self.notifier.notify(Severity.ERROR, message, path=path, exc_code=exc.code)
        return message

    def _refuse(self, exc: AuthError) -> str:
        logger.warning("auth_refused", extra={"exc_code": exc.code})
        self.notifier.notify(Severity.ERROR, str(exc), exc_code=exc.code)
        return str(exc)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> bool:
        """Exchange credentials for a bearer token and store the user."""
        path = endpoints.LOGIN
        try:
            body = self.client.post(path, {"email": email, "password": password},
                                    authenticated=False)
            if not isinstance(body, dict) or not body.get("access_token"):
                raise MalformedResponseError(path, "no access_token in login response")
            user = User.from_payload(body.get("user") or {})
        except ApiError as exc:
            self._report("POST", path, exc, "Login failed")
            return False

        self.session.populate(str(body["access_token"]), user)
        LogContext.set(actor_id=user.id)
        logger.info("user_logged_in", extra={"user_id": user.id, "role": user.role.value})
        self.notifier.notify(Severity.SUCCESS, "Logged in")
        return True

    def logout(self) -> None:
        user_id = self.session.user.id if self.session.user else None
        self.session.clear()
        logger.info("user_logged_out", extra={"user_id": user_id})

    def update_profile(self, name: str) -> User | None:
        """Rename the current user; returns the merged profile."""
        if not self.session.is_authenticated:
            return None
        path = endpoints.UPDATE_USER
        try:
            body = self.client.post(path, {"id": self.session.user.id, "name": name})
        except ApiError as exc:
            self._report("POST", path, exc, "Could not update the profile")
            return None

        changes: dict[str, Any] = {"name": name}
        if isinstance(body, dict) and isinstance(body.get("user"), dict):
            changes.update(body["user"])
        user = self.session.merge_profile(changes)
        self.notifier.notify(Severity.SUCCESS, "Profile updated")
        return user

    def change_password(self, current: str, new: str, confirmation: str) -> bool:
        """Run the change-password flow; logs out on success."""
        if not self.session.is_authenticated:
            return False
        user = self.session.user

        try:
            self.client.post(endpoints.CHECK_PASSWORD,
                             {"email": user.email, "password": current})
        except BackendError:
            self.notifier.notify(Severity.ERROR, "Current password is incorrect")
            return False
        except ApiError as exc:
            self._report("POST", endpoints.CHECK_PASSWORD, exc, "Could not verify the password")
            return False

        try:
            require_valid_password(new, confirmation)
        except AuthError as exc:
            self._refuse(exc)
            return False

        path = endpoints.CHANGE_PASSWORD
        try:
            self.client.post(path, {"id": user.id, "new_password": new})
        except ApiError as exc:
            self._report("POST", path, exc, "Could not change the password")
            return False

        logger.info("password_changed", extra={"user_id": user.id})
        self.notifier.notify(Severity.SUCCESS, "Password changed, please log in again")
        self.logout()
        return True

    def forgot_password(self, email: str) -> bool:
        """Ask the backend to email a reset link."""
        path = endpoints.FORGOT_PASSWORD
        try:
            self.client.post(path, {"email": email}, authenticated=False)
        except ApiError as exc:
            self._report("POST", path, exc, "Failed to send reset link")
            return False
        self.notifier.notify(Severity.SUCCESS, "Reset link sent")
        return True

    def reset_password(self, token: str, email: str, password: str, confirmation: str) -> bool:
        """Set a new password from an emailed reset token."""
        try:
            require_valid_password(password, confirmation)
        except AuthError as exc:
            self._refuse(exc)
            return False
        path = endpoints.RESET_PASSWORD
        try:
            self.client.post(path, {
                "token": token,
                "email": email,
                "password": password,
                "password_confirmation": confirmation,
            }, authenticated=False)
        except ApiError as exc:
            self._report("POST", path, exc, "Failed to reset the password")
            return False
        self.notifier.notify(Severity.SUCCESS, "Password reset, please log in")
        return True

    # ------------------------------------------------------------------
    # Account management (admin only)
    # ------------------------------------------------------------------

    def list_accounts(self) -> list[User]:
        try:
            require_permission(self.session, ACCOUNT_MANAGE)
        except AuthError as exc:
            self._refuse(exc)
            return []
        path = endpoints.LIST_USER
        try:
            body = self.client.post(path, {"role": self.session.role.value})
            rows = unwrap_list(body, path, key="list_user")
        except ApiError as exc:
            self._report("POST", path, exc, "Could not load accounts")
            return []
        return [User.from_payload(row) for row in rows]

    def create_account(self, name: str, email: str, password: str) -> MutationResult:
        """
        Register a manager account, then ask the backend to send the
        verification email. A failed verification email does not undo
        the registration.
        """
        try:
            require_permission(self.session, ACCOUNT_MANAGE)
            require_valid_password(password)
        except AuthError as exc:
            return MutationResult(ok=False, message=self._refuse(exc))

        path = endpoints.REGISTER
        try:
            body = self.client.post(path, {
                "name": name,
                "email": email,
                "password": password,
                "role": UserRole.MANAGER.value,
                "status": UserStatus.ACTIVE.value,
            })
            record = unwrap_record(body, path) if body is not None else {}
        except ApiError as exc:
            return MutationResult(ok=False, message=self._report("POST", path, exc,
                                                                 "Could not create the account"))

        user = User.from_payload(record.get("user") or {"name": name, "email": email, **record})
        try:
            self.client.post(endpoints.SEND_VERIFY_EMAIL, {"email": email})
        except ApiError as exc:
            log_api_failure(method="POST", path=endpoints.SEND_VERIFY_EMAIL, exc_code=exc.code)
            self.notifier.notify(Severity.WARNING, "Account created but the verification email failed")
            return MutationResult(ok=True, record=user, message="Verification email failed")

        logger.info("account_created", extra={"email": email})
        self.notifier.notify(Severity.SUCCESS, "Account created, verification email sent")
        return MutationResult(ok=True, record=user, message="Account created")

    def set_account_status(self, user_id: str, status: UserStatus | str) -> MutationResult:
        try:
            require_permission(self.session, ACCOUNT_MANAGE)
        except AuthError as exc:
            return MutationResult(ok=False, message=self._refuse(exc))

        status = UserStatus(status)
        path = endpoints.UPDATE_USER
        try:
            self.client.post(path, {"id": user_id, "status": status.value})
        except ApiError as exc:
            return MutationResult(ok=False, message=self._report("POST", path, exc,
                                                                 "Could not update the account"))
        logger.info("account_status_changed", extra={"user_id": user_id, "status": status.value})
        self.notifier.notify(Severity.SUCCESS, f"Account {status.value}")
        return MutationResult(ok=True, record=user_id, message=f"Account {status.value}")
