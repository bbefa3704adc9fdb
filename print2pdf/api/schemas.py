"""Response schemas of the print2pdf HTTP API."""

from pydantic import BaseModel, Field


class PrintResponse(BaseModel):
    """Response of /v1/print."""

    url: str = Field(description="URL of the uploaded PDF")


class ErrorResponse(BaseModel):
    """Error response body."""

    message: str = Field(description="Human readable error message")
