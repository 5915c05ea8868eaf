"""JSON envelope helpers shared by all user routes.

Single objects and errors:  {success, message, data?, error?}
Lists:                      {success, message, data, pagination}
"""

from fastapi import status
from fastapi.responses import JSONResponse

from api.models import APIResponse, PaginatedResponse, Pagination, UserResponse
from domain.model.errors import DomainError, DuplicateError, NotFoundError, ValidationError
from domain.model.user import UserPage


def _envelope(body: APIResponse) -> dict:
    # data and error are omitted when empty; nulls inside data are kept
    content = body.model_dump(mode='json')
    return {k: v for k, v in content.items() if v is not None}


def success(status_code: int, message: str, data: UserResponse | None = None) -> JSONResponse:
    body = APIResponse(success=True, message=message, data=data)
    return JSONResponse(status_code=status_code, content=_envelope(body))


def error(status_code: int, message: str, detail: str) -> JSONResponse:
    body = APIResponse(success=False, message=message, error=detail)
    return JSONResponse(status_code=status_code, content=_envelope(body))


def paginated(status_code: int, message: str, page: UserPage) -> JSONResponse:
    body = PaginatedResponse(
        success=True,
        message=message,
        data=[UserResponse.from_domain(u) for u in page.items],
        pagination=Pagination(
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        ),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode='json'))


def status_for(exc: DomainError) -> int:
    """Map a domain error kind to its HTTP status. Same mapping for every route."""
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (DuplicateError, ValidationError)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def domain_error(exc: DomainError, message: str) -> JSONResponse:
    """Render a domain error. NotFound always uses the "User not found" message."""
    status_code = status_for(exc)
    if status_code == status.HTTP_404_NOT_FOUND:
        message = "User not found"
    return error(status_code, message, str(exc))
