"""Unit tests for AuthSession and the boundary validation helpers."""

import pytest

from resale_kernel.domain.session import AuthSession
from resale_kernel.domain.validation import (
    is_valid_password,
    require_non_negative,
    require_valid_password,
)
from resale_kernel.domain.values import Money
from resale_kernel.exceptions import (
    NegativeAmountError,
    PasswordMismatchError,
    PasswordPolicyError,
)
from tests.builders import make_user


class TestAuthSession:

    def test_starts_logged_out(self):
        session = AuthSession()
        assert not session.is_authenticated
        assert session.auth_headers() == {}
        assert session.role is None

    def test_populate_and_clear_bump_generation(self):
        session = AuthSession()
        session.populate("tok", make_user())
        assert session.is_authenticated
        assert session.generation == 1
        assert session.auth_headers() == {"Authorization": "Bearer tok"}
        session.clear()
        assert session.generation == 2
        assert session.user is None

    def test_merge_profile_only_touches_profile_fields(self):
        session = AuthSession()
        session.populate("tok", make_user())
        user = session.merge_profile({"name": "New", "role": "manager"})
        assert user.name == "New"
        assert user.is_admin

    def test_merge_profile_logged_out(self):
        assert AuthSession().merge_profile({"name": "x"}) is None


class TestPasswordPolicy:

    @pytest.mark.parametrize("password", ["Abcdef1!", "Zz9@zzzzzzzz"])
    def test_valid(self, password):
        assert is_valid_password(password)

    @pytest.mark.parametrize("password", [
        "Ab1!",                      # too short
        "abcdefg1!",                 # no uppercase
        "ABCDEFG1!",                 # no lowercase
        "Abcdefgh!",                 # no digit
        "Abcdefgh1",                 # no special
        "Abcdefg1!#",                # disallowed character
        "Abcdefg1!" + "a" * 12,      # too long
        "",
    ])
    def test_invalid(self, password):
        assert not is_valid_password(password)

    def test_mismatch_checked_first(self):
        with pytest.raises(PasswordMismatchError):
            require_valid_password("short", "other")

    def test_policy(self):
        with pytest.raises(PasswordPolicyError):
            require_valid_password("short", "short")


class TestRequireNonNegative:

    def test_passes_through(self):
        m = Money.of(0)
        assert require_non_negative(m, "x") is m

    def test_negative(self):
        with pytest.raises(NegativeAmountError) as exc_info:
            require_non_negative(Money.of(-1), "total_cost")
        assert exc_info.value.field == "total_cost"
