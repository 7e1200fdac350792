"""Error taxonomy shared by services and converted to JSON at the API boundary."""

from __future__ import annotations

from typing import Any


class DispatchError(Exception):
    """Base class for errors that map onto a structured JSON response."""

    status_code: int = 500
    code: str = "dispatch_error"
    # Payment handlers report "success" rather than "ok".
    result_flag: str = "ok"

    def __init__(self, message: str, *, code: str | None = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context

    def to_payload(self, result_flag: str | None = None) -> dict[str, Any]:
        return {result_flag or self.result_flag: False, "error": self.code, "message": self.message, **self.context}


class ValidationError(DispatchError):
    """Missing or malformed request fields."""

    status_code = 400
    code = "validation_error"


class AuthError(DispatchError):
    status_code = 401
    code = "unauthorized"


class ForbiddenError(AuthError):
    """Authenticated, but acting on someone else's behalf."""

    status_code = 403
    code = "forbidden"


class NotFoundError(DispatchError):
    status_code = 404
    code = "not_found"


class NoDriversError(NotFoundError):
    """No driver passed the eligibility filter."""

    code = "no_drivers"


class RadiusExceededError(DispatchError):
    """Drivers exist but the closest one is outside the matching radius."""

    status_code = 404
    code = "drivers_too_far"


class StateConflictError(DispatchError):
    """The delivery is not in a state that allows the requested transition."""

    status_code = 400
    code = "invalid_state"


class PaymentStateError(DispatchError):
    """The delivery's payment is not in a state the gateway call allows."""

    status_code = 400
    code = "INVALID_STATUS"
    result_flag = "success"


class ConfigurationError(DispatchError):
    """Pricing or service configuration is missing; no defaults are substituted."""

    status_code = 500
    code = "configuration_error"


class UpstreamError(DispatchError):
    """A storage or gateway call failed."""

    status_code = 500
    code = "upstream_error"


class PaymentGatewayError(UpstreamError):
    status_code = 502
    code = "GATEWAY_ERROR"
    result_flag = "success"
