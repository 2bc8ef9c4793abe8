class ApiError(Exception):
    """Remote admin call failed"""

    code = 500
    name = "Internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ApiError):
    """Raised when a topic or subscription does not exist"""
    code = 404
    name = "NotFound"


class AlreadyExistsError(ApiError):
    code = 409
    name = "AlreadyExists"


class InvalidArgumentError(ApiError):
    code = 400
    name = "InvalidArgument"
