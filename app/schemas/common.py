from pydantic import BaseModel, ValidationError
from fastapi.exceptions import RequestValidationError
from typing import TypeVar, Generic, Any

from app.utils.exceptions import BadRequestException

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


# ─── Envelopes ────────────────────────────────────────────────────────────────
class SuccessResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


def success_response(message: str, data: Any = None) -> dict:
    """Envelope returned by every route handler."""
    return {"success": True, "message": message, "data": data}


def paginated_response(message: str, data: list, total: int, page: int, limit: int) -> dict:
    total_pages = (total + limit - 1) // limit if limit > 0 else 0
    meta = PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        totalPages=total_pages,
        hasNext=page < total_pages,
        hasPrev=page > 1,
    )
    return {"success": True, "message": message, "data": data, "meta": meta.model_dump()}


# ─── Query params ─────────────────────────────────────────────────────────────
def clamp_pagination(page: int, limit: int | None, default_limit: int, max_limit: int) -> tuple[int, int]:
    """Out-of-range limits fall back to the default rather than erroring."""
    page = max(page, 1)
    if limit is None or limit < 1 or limit > max_limit:
        limit = default_limit
    return page, limit


# ─── Multipart "data" field ───────────────────────────────────────────────────
def parse_form_json(model: type[M], raw: str | None) -> M:
    """
    Multipart endpoints carry their JSON payload in a "data" form field.
    Validation errors are reported like any other request body error.
    """
    if not raw or not raw.strip():
        raise BadRequestException("missing data field", field="data")
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))
