"""Upload and document errors.

Each error carries the HTTP status the API answers with, so the server can
map the whole hierarchy with a single exception handler.
"""

class VconError(Exception):
    status_code = 400
    message = "Invalid vCon file"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self):
        return {"message": self.message}


class NoFileError(VconError):
    message = "No file uploaded"


class UnsupportedFileError(VconError):
    message = "Only JSON files are allowed"


class FileTooLargeError(VconError):
    status_code = 413
    message = "File exceeds the upload size limit"


class InvalidJSONError(VconError):
    message = "Invalid JSON file"


class InvalidStructureError(VconError):
    message = "Invalid vCon file structure"
