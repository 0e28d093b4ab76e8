"""Error taxonomy for authentication outcomes.

Every failure of a boundary operation is an ``AuthError`` carrying a stable
``code``, an HTTP-equivalent ``status_code`` and a human-readable message.
Messages never contain plaintext passwords, password hashes or session ids.
"""


class AuthError(Exception):
    """Base authentication error."""

    code = "AUTH_ERROR"
    status_code = 400
    default_message = "Authentication error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingFields(AuthError):
    """Email or password absent from the request."""

    code = "MISSING_FIELDS"
    status_code = 400
    default_message = "Credentials missing"


class InvalidFields(AuthError):
    """Fields present but unusable (e.g. a password bcrypt cannot hash)."""

    code = "INVALID_FIELDS"
    status_code = 400
    default_message = "Invalid credentials"


class DuplicateEmail(AuthError):
    code = "DUPLICATE_EMAIL"
    status_code = 409
    default_message = "A user with this email already exists"


class DuplicateGithubId(AuthError):
    code = "DUPLICATE_GITHUB_ID"
    status_code = 409
    default_message = "This GitHub account is already linked"


class WrongPassword(AuthError):
    code = "WRONG_PASSWORD"
    status_code = 401
    default_message = "Wrong password"


class NoSuchUser(AuthError):
    code = "NO_SUCH_USER"
    status_code = 404
    default_message = "User not found"


class Unauthorized(AuthError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Unauthorized"


class LinkingFailure(AuthError):
    """The OAuth profile could not be resolved to a local user."""

    code = "LINKING_FAILURE"
    status_code = 502
    default_message = "Could not link GitHub account"


class DestroyFailed(AuthError):
    code = "DESTROY_FAILED"
    status_code = 500
    default_message = "Logout failed"


class StoreUnavailable(AuthError):
    """Backing store failure not otherwise classified."""

    code = "STORE_UNAVAILABLE"
    status_code = 503
    default_message = "Storage unavailable"
