class FinTrackError(Exception):
    """Base error for failures surfaced to the caller as a single message."""


class AuthenticationMissingError(FinTrackError):
    pass


class MalformedInputError(FinTrackError):
    pass


class RemoteServiceError(FinTrackError):
    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code
