"""RFC 7807 Problem Details for HTTP APIs.

RFC 7807: https://tools.ietf.org/html/rfc7807

Exports:
    ProblemDetails: RFC 7807 compliant error response schema
    problem_response: Build a JSONResponse from a DomainError
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from transmit.core.errors import DomainError

PROBLEM_MEDIA_TYPE = "application/problem+json"


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        type: URI reference identifying the problem type
        title: Short, human-readable summary of the problem type
        status: HTTP status code for this occurrence
        detail: Human-readable explanation specific to this occurrence
        instance: URI reference identifying the specific occurrence
        field: Request field at fault, for validation failures
    """

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: str = Field(..., description="URI reference identifying this occurrence")
    field: str | None = Field(None, description="Request field at fault")


_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
}


def problem_response(request: Request, status_code: int, error: DomainError) -> JSONResponse:
    """Render a domain error as an RFC 7807 response.

    Args:
        request: Current request (for ``instance``).
        status_code: HTTP status to return.
        error: Domain error carrying code and message.

    Returns:
        JSONResponse with ``application/problem+json`` content type.
    """
    problem = ProblemDetails(
        type=f"urn:transmit:error:{error.code.value}",
        title=_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=error.message,
        instance=str(request.url.path),
        field=getattr(error, "field", None),
    )
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )
