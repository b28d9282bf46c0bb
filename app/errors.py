"""Typed errors raised by the onboarding services.

Each class carries the HTTP status it maps to and the message shown to the
caller. Services raise these; the exception handler in app.main renders them.
"""


class OnboardingError(Exception):
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.public_message
        self.context = context
        super().__init__(self.message)

    @property
    def detail(self) -> str:
        return self.message


class ValidationError(OnboardingError):
    """Malformed or missing input. Surfaced verbatim."""
    status_code = 400
    public_message = "Invalid request"


class ConflictError(OnboardingError):
    status_code = 409
    public_message = "Email already registered"


class TokenError(OnboardingError):
    """Base for verification token failures.

    Subclasses are distinguished in logs and audit rows only; the caller always
    gets the same message so the response cannot be used as an oracle.
    """
    status_code = 400
    public_message = "Invalid or expired verification token."
    reason = "invalid"

    @property
    def detail(self) -> str:
        return self.public_message


class InvalidTokenError(TokenError):
    reason = "invalid"


class ExpiredTokenError(TokenError):
    reason = "expired"


class AlreadyUsedError(TokenError):
    reason = "already_used"


class StaleStateError(OnboardingError):
    """The row changed since the caller read it; re-fetch and retry."""
    status_code = 409
    public_message = "The record was modified by another request. Reload and try again."


class NotFoundError(OnboardingError):
    status_code = 404
    public_message = "Not found"


class AuthenticationError(OnboardingError):
    status_code = 401
    public_message = "Not authenticated"


class PermissionDeniedError(OnboardingError):
    status_code = 403
    public_message = "Permission denied"


class InternalError(OnboardingError):
    """Unexpected storage failure. Message is never shown to the caller."""
    status_code = 500

    @property
    def detail(self) -> str:
        return self.public_message


class NotificationError(Exception):
    """Outbound email could not be handed to the provider."""
