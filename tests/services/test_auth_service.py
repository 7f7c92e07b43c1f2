"""Tests for login, password and account management (resale_services/auth_service.py)."""

import httpx
import pytest

from resale_config.schema import ApiSettings
from resale_kernel.domain.entities import UserRole, UserStatus
from resale_kernel.domain.session import AuthSession
from resale_services.api_client import ApiClient
from resale_services.auth_service import CANNOT_REACH_SERVER, AuthService
from resale_services.notifications import Severity
from tests.builders import BASE_URL, logged_in_session

GOOD_PASSWORD = "Passw0rd!"


@pytest.fixture
def auth(client, notifier):
    return AuthService(client, notifier)


def _service(backend, notifier, session):
    api = ApiClient(ApiSettings(base_url=BASE_URL), session, httpx.MockTransport(backend.handler))
    return AuthService(api, notifier)


class TestLogin:

    def test_populates_session(self, backend, notifier):
        backend.add("POST", "login", json_body={
            "access_token": "abc",
            "user": {"id": 5, "name": "Hoa", "email": "hoa@x.vn", "role": "manager"},
        })
        session = AuthSession()
        auth = _service(backend, notifier, session)

        assert auth.login("hoa@x.vn", "pw")
        assert session.access_token == "abc"
        assert session.role is UserRole.MANAGER
        assert session.generation == 1
        assert backend.sent_json("POST", "login") == {"email": "hoa@x.vn", "password": "pw"}
        assert "Authorization" not in backend.last().headers

    def test_bad_credentials(self, backend, notifier):
        backend.add("POST", "login", status=401, json_body={"error": "Unauthorized"})
        session = AuthSession()
        assert not _service(backend, notifier, session).login("a@b", "x")
        assert session.access_token is None
        assert notifier.messages(Severity.ERROR) == ["Unauthorized"]

    def test_response_without_token(self, backend, notifier):
        backend.add("POST", "login", json_body={"user": {"id": 1}})
        session = AuthSession()
        assert not _service(backend, notifier, session).login("a@b", "x")
        assert notifier.last.message == "Login failed"

    def test_unreachable(self, notifier):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        api = ApiClient(ApiSettings(base_url=BASE_URL), AuthSession(), httpx.MockTransport(refuse))
        assert not AuthService(api, notifier).login("a@b", "x")
        assert notifier.last.message == CANNOT_REACH_SERVER

    def test_logout_bumps_generation(self, auth, session):
        before = session.generation
        auth.logout()
        assert session.access_token is None
        assert session.generation == before + 1


class TestProfile:

    def test_update_profile_merges_name(self, auth, backend, session):
        backend.add("POST", "update-user", json_body={"message": "ok"})
        user = auth.update_profile("New Name")
        assert user.name == "New Name"
        assert session.user.name == "New Name"
        assert backend.sent_json() == {"id": "u1", "name": "New Name"}

    def test_update_profile_failure_keeps_user(self, auth, backend, session):
        backend.add("POST", "update-user", status=500, json_body={"message": "nope"})
        assert auth.update_profile("New Name") is None
        assert session.user.name == "Operator"


class TestChangePassword:

    def test_full_flow_logs_out(self, auth, backend, session):
        backend.add("POST", "check-password", json_body={"message": "ok"})
        backend.add("POST", "change-password", json_body={"message": "changed"})

        assert auth.change_password("old", GOOD_PASSWORD, GOOD_PASSWORD)
        assert backend.paths() == ["check-password", "change-password"]
        assert backend.sent_json("POST", "change-password") == {
            "id": "u1", "new_password": GOOD_PASSWORD,
        }
        assert session.access_token is None

    def test_wrong_current_password_stops(self, auth, backend, notifier):
        backend.add("POST", "check-password", status=400, json_body={"message": "bad"})
        assert not auth.change_password("wrong", GOOD_PASSWORD, GOOD_PASSWORD)
        assert notifier.last.message == "Current password is incorrect"
        assert backend.paths() == ["check-password"]

    def test_mismatched_confirmation(self, auth, backend, notifier, session):
        backend.add("POST", "check-password", json_body={})
        assert not auth.change_password("old", GOOD_PASSWORD, "Passw0rd?")
        assert notifier.last.context["exc_code"] == "PASSWORD_MISMATCH"
        assert session.access_token == "token-123"

    def test_weak_password_never_sent(self, auth, backend, notifier):
        backend.add("POST", "check-password", json_body={})
        assert not auth.change_password("old", "weak", "weak")
        assert "change-password" not in backend.paths()
        assert notifier.last.context["exc_code"] == "PASSWORD_POLICY"


class TestPasswordReset:

    def test_forgot_password(self, auth, backend):
        backend.add("POST", "forgot-password", json_body={"message": "sent"})
        assert auth.forgot_password("a@b.vn")
        assert backend.sent_json() == {"email": "a@b.vn"}

    def test_reset_password_payload(self, auth, backend):
        backend.add("POST", "reset-password", json_body={})
        assert auth.reset_password("tok", "a@b.vn", GOOD_PASSWORD, GOOD_PASSWORD)
        assert backend.sent_json()["password_confirmation"] == GOOD_PASSWORD

    def test_reset_password_policy(self, auth, backend):
        assert not auth.reset_password("tok", "a@b.vn", "short", "short")
        assert backend.requests == []


class TestAccounts:

    def test_list_accounts(self, auth, backend):
        backend.add("POST", "getListUser", json_body={"list_user": [
            {"id": 2, "name": "M", "email": "m@x", "role": "manager", "status": "inactive"},
        ]})
        (user,) = auth.list_accounts()
        assert user.status is UserStatus.INACTIVE
        assert backend.sent_json() == {"role": "admin"}

    def test_manager_cannot_list(self, backend, notifier):
        auth = _service(backend, notifier, logged_in_session(UserRole.MANAGER))
        assert auth.list_accounts() == []
        assert backend.requests == []

    def test_create_account_sends_verification(self, auth, backend, notifier):
        backend.add("POST", "register", json_body={"user": {"id": 9, "email": "n@x", "name": "N"}})
        backend.add("POST", "send-verify-email", json_body={})

        result = auth.create_account("N", "n@x", GOOD_PASSWORD)
        assert result.ok
        assert result.record.id == "9"
        assert backend.sent_json("POST", "register")["role"] == "manager"
        assert backend.sent_json("POST", "send-verify-email") == {"email": "n@x"}
        assert notifier.last.severity is Severity.SUCCESS

    def test_verification_failure_keeps_account(self, auth, backend, notifier):
        backend.add("POST", "register", json_body={"id": 9, "email": "n@x"})
        backend.add("POST", "send-verify-email", status=500, json_body={"message": "smtp"})

        result = auth.create_account("N", "n@x", GOOD_PASSWORD)
        assert result.ok
        assert result.message == "Verification email failed"
        assert notifier.last.severity is Severity.WARNING

    def test_register_rejected(self, auth, backend):
        backend.add("POST", "register", status=422,
                    json_body={"message": "The email has already been taken."})
        result = auth.create_account("N", "n@x", GOOD_PASSWORD)
        assert not result.ok
        assert result.message == "The email has already been taken."
        assert "send-verify-email" not in backend.paths()

    def test_set_account_status(self, auth, backend):
        backend.add("POST", "update-user", json_body={})
        result = auth.set_account_status("2", "inactive")
        assert result.ok
        assert backend.sent_json() == {"id": "2", "status": "inactive"}
