"""
Typed exception hierarchy for the resale dashboard.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, log- and API-safe) and structured
attributes for the data that caused it.

    ResaleError (base)
    |
    +-- InvalidInputError
    |   +-- NegativeAmountError
    |   +-- InvalidRateError
    |   +-- InvalidPeriodError
    |   +-- InvalidPageError
    |
    +-- BudgetError
    |   +-- BudgetMismatchError
    |
    +-- ApiError
    |   +-- TransportError
    |   +-- BackendError
    |   +-- MalformedResponseError
    |
    +-- AuthError
    |   +-- NotAuthenticatedError
    |   +-- PermissionDeniedError
    |   +-- PasswordPolicyError
    |   +-- PasswordMismatchError
    |
    +-- ConfigError

Category        | Code                   | When Raised
----------------|------------------------|-----------------------------------------
Input           | NEGATIVE_AMOUNT        | Negative money passed to an engine
                | INVALID_RATE           | Rate outside [0, 1]
                | INVALID_PERIOD         | Unparseable period value
                | INVALID_PAGE           | Page size < 1
----------------|------------------------|-----------------------------------------
Budget          | BUDGET_MISMATCH        | Contract draws on a different budget
----------------|------------------------|-----------------------------------------
API             | TRANSPORT_ERROR        | No response (network, timeout)
                | BACKEND_ERROR          | Non-2xx with a message
                | MALFORMED_RESPONSE     | Non-JSON or unexpected shape
----------------|------------------------|-----------------------------------------
Auth            | NOT_AUTHENTICATED      | No token in the session
                | PERMISSION_DENIED      | Role lacks the permission
                | PASSWORD_POLICY        | Password fails complexity rules
                | PASSWORD_MISMATCH      | Confirmation differs
----------------|------------------------|-----------------------------------------
Config          | CONFIG_ERROR           | Missing or invalid configuration

Budget overconsumption is deliberately NOT an exception: it is an advisory
result (see ``resale_engines.rate_allocation.would_exceed``).
"""


class ResaleError(Exception):
    """
    Base exception for all resale dashboard errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "RESALE_ERROR"


# Input validation


class InvalidInputError(ResaleError):
    """Base exception for rejected engine inputs."""

    code: str = "INVALID_INPUT"


class NegativeAmountError(InvalidInputError):
    """A money amount that must be non-negative was negative."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, field: str, amount: str):
        self.field = field
        self.amount = amount
        super().__init__(f"{field} must be non-negative, got {amount}")


class InvalidRateError(InvalidInputError):
    """A rate fell outside [0, 1]."""

    code: str = "INVALID_RATE"

    def __init__(self, field: str, rate: str):
        self.field = field
        self.rate = rate
        super().__init__(f"{field} must be a fraction in [0, 1], got {rate}")


class InvalidPeriodError(InvalidInputError):
    """A reporting period value could not be parsed."""

    code: str = "INVALID_PERIOD"

    def __init__(self, granularity: str, value: str):
        self.granularity = granularity
        self.value = value
        super().__init__(f"Invalid {granularity} period value: {value!r}")


class InvalidPageError(InvalidInputError):
    """Page size must be at least one."""

    code: str = "INVALID_PAGE"

    def __init__(self, per_page: int):
        self.per_page = per_page
        super().__init__(f"Page size must be >= 1, got {per_page}")


# Budget


class BudgetError(ResaleError):
    """Base exception for budget-related errors."""

    code: str = "BUDGET_ERROR"


class BudgetMismatchError(BudgetError):
    """A contract was evaluated against a budget it does not draw on."""

    code: str = "BUDGET_MISMATCH"

    def __init__(self, budget_id: str, contract_budget_id: str):
        self.budget_id = budget_id
        self.contract_budget_id = contract_budget_id
        super().__init__(
            f"Contract draws on budget {contract_budget_id}, not {budget_id}"
        )


# API / transport


class ApiError(ResaleError):
    """Base exception for backend I/O failures."""

    code: str = "API_ERROR"


class TransportError(ApiError):
    """The request got no response (connection refused, timeout, ...)."""

    code: str = "TRANSPORT_ERROR"

    def __init__(self, method: str, path: str, reason: str):
        self.method = method
        self.path = path
        self.reason = reason
        super().__init__(f"{method} {path} failed: {reason}")


class BackendError(ApiError):
    """The backend answered with a non-2xx status.

    ``message`` is the backend's own text and is shown to the operator
    verbatim.
    """

    code: str = "BACKEND_ERROR"

    def __init__(self, method: str, path: str, status_code: int, message: str):
        self.method = method
        self.path = path
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class MalformedResponseError(ApiError):
    """The response body was not JSON or did not have the expected shape."""

    code: str = "MALFORMED_RESPONSE"

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Malformed response from {path}: {detail}")


# Auth


class AuthError(ResaleError):
    """Base exception for authentication / authorization errors."""

    code: str = "AUTH_ERROR"


class NotAuthenticatedError(AuthError):
    """The session holds no access token."""

    code: str = "NOT_AUTHENTICATED"

    def __init__(self) -> None:
        super().__init__("Session expired, please log in again")


class PermissionDeniedError(AuthError):
    """The current user's role does not grant the permission."""

    code: str = "PERMISSION_DENIED"

    def __init__(self, role: str | None, permission: str):
        self.role = role
        self.permission = permission
        super().__init__(f"Role {role!r} may not perform {permission!r}")


class PasswordPolicyError(AuthError):
    """Password does not satisfy the complexity rules."""

    code: str = "PASSWORD_POLICY"

    def __init__(self) -> None:
        super().__init__(
            "Password must be 8-20 characters and contain a lowercase letter, "
            "an uppercase letter, a digit and one of @$!%*?&"
        )


class PasswordMismatchError(AuthError):
    """New password and its confirmation differ."""

    code: str = "PASSWORD_MISMATCH"

    def __init__(self) -> None:
        super().__init__("Password confirmation does not match")


# Config


class ConfigError(ResaleError):
    """Configuration is missing or invalid."""

    code: str = "CONFIG_ERROR"

    def __init__(self, key: str, detail: str):
        self.key = key
        self.detail = detail
        super().__init__(f"Invalid configuration for {key}: {detail}")
