"""
Standard response bodies for API feedback.

`respond` returns the serialized body, ready to be used as the `detail` of an
`HTTPException`.
"""

from typing import Any

from pydantic import BaseModel

__all__ = ["ErrorResponse"]


class ErrorResponse(BaseModel):
    message: str
    error: bool = True
    exception: str | None = None
    errors: list[str] | None = None
    """individual problems, e.g. every reason a search query was rejected"""

    @classmethod
    def respond(cls, message: str, exception: str | None = None, errors: list[str] | None = None) -> dict[str, Any]:
        """
        Creates an `ErrorResponse` and returns its dictionary representation.

        Args:
            message (str): The error message.
            exception (str | None, optional): String form of the exception. Defaults to None.
            errors (list[str] | None, optional): Detailed error messages. Defaults to None.

        Returns:
            dict[str, Any]: The serialized error response.
        """
        return cls(message=message, exception=exception, errors=errors).model_dump()
