class SocialHubError(Exception):

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SocialHubError):
    """Rejected input: empty message content, unknown reaction kind."""

    status_code = 400


class NotFoundError(SocialHubError):
    """The record does not exist, or not in the caller's scope."""

    status_code = 404


class ForbiddenError(SocialHubError):
    """The caller is not the owning party."""

    status_code = 403


class TransientStoreError(SocialHubError):
    """The document store is unavailable. Never retried here."""

    status_code = 500
