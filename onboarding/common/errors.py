from fastapi import status


class AppError(Exception):
    """Base for failures reported to API callers through the error envelope.

    ``kind`` is the stable machine-readable identifier, ``message`` is safe to
    show to an end user.
    """

    kind = "APP_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)
