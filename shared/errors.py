class DirectoryError(Exception):
    """Base class for errors surfaced to clients as a failed envelope."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedSubmission(DirectoryError):
    status_code = 400


class MissingField(DirectoryError):
    status_code = 400

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class InvalidCategory(DirectoryError):
    status_code = 400

    def __init__(self, category: str):
        super().__init__(f"Invalid category: {category!r}")
        self.category = category


class InvalidRange(DirectoryError):
    status_code = 400


class NotFound(DirectoryError):
    status_code = 404


class StoreUnavailable(DirectoryError):
    status_code = 500

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class UploadFailed(DirectoryError):
    status_code = 500

    def __init__(self, filename: str, cause: Exception | None = None):
        super().__init__(f"Upload failed for {filename!r}")
        self.filename = filename
        self.cause = cause
