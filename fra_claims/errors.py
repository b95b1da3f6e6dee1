# fra_claims/errors.py
"""Error taxonomy shared by the store, the intake stub and the HTTP layer."""


class FRAError(Exception):
    """Base class for application errors."""


class ValidationError(FRAError):
    """Missing or malformed input."""


class UnsupportedMediaError(ValidationError):
    """Upload MIME type is not on the allow-list."""


class FileTooLargeError(ValidationError):
    """Upload exceeds the configured size cap."""


class NotFoundError(FRAError):
    """Unknown entity id."""


class DuplicateKeyError(FRAError):
    """Unique key (claim code, username) already taken."""


class ProcessingError(FRAError):
    """Document intake could not read or process the stored file."""

    def __init__(self, message: str, file=None):
        super().__init__(message)
        # upload record, left `failed`, when raised from the upload path
        self.file = file
