class SkillBridgeException(Exception):
    """Base exception for SkillBridge application.

    Carries the HTTP status and the machine-readable code that end up in the
    ``{"success": false, "error": {"code", "message"}}`` envelope.
    """

    status_code = 500
    code = "INTERNAL_SERVER_ERROR"
    default_message = "An internal server error occurred."

    def __init__(self, message=None, code=None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def __repr__(self):
        return f"<{type(self).__name__}(status_code={self.status_code}, code={self.code}, message={self.message!r})>"


class BadRequestError(SkillBridgeException):
    """Exception raised for missing or malformed input"""
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Invalid request."


class AuthenticationError(SkillBridgeException):
    """Exception raised when no valid session is present"""
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required. Please log in."


class AuthorizationError(SkillBridgeException):
    """Exception raised for authenticated callers lacking permission"""
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Insufficient permissions."


class EmailNotVerifiedError(AuthorizationError):
    code = "EMAIL_NOT_VERIFIED"
    default_message = "Please verify your email address."


class AccountSuspendedError(AuthorizationError):
    code = "ACCOUNT_SUSPENDED"
    default_message = "Your account has been suspended."


class AccountInactiveError(AuthorizationError):
    code = "ACCOUNT_INACTIVE"
    default_message = "Your account is inactive."


class NotFoundError(SkillBridgeException):
    """Exception raised for missing entities and profiles"""
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found."


class InvalidCategoryError(NotFoundError):
    code = "INVALID_CATEGORY"
    default_message = "Category not found."


class ConflictError(SkillBridgeException):
    """Exception raised for illegal state transitions and uniqueness violations"""
    status_code = 409
    code = "CONFLICT"
    default_message = "Request conflicts with the current state."


class CategoryInUseError(ConflictError):
    code = "CATEGORY_IN_USE"
    default_message = "Cannot delete category that is still assigned to tutors."


class AuthProviderError(SkillBridgeException):
    """Exception raised when the external auth provider cannot be reached"""
    status_code = 500
    code = "AUTH_ERROR"
    default_message = "Internal server error during authentication."


class AuthProviderUnavailableError(SkillBridgeException):
    status_code = 503
    code = "AUTH_PROVIDER_UNAVAILABLE"
    default_message = "Authentication provider is not configured."


def profile_not_found(kind: str) -> NotFoundError:
    return NotFoundError(f"{kind} profile not found. Create your profile first.")
