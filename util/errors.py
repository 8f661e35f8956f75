# util/errors.py
from typing import Any, Optional
from fastapi import HTTPException, status


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self,
        message: str,
        http_status: int = status.HTTP_400_BAD_REQUEST,
        detail: Optional[Any] = None,
    ) -> None:
        super().__init__(status_code=http_status, detail=message)
        self.message = message
        self.extra = detail
