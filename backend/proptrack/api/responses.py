from typing import Any, Dict, List, Optional
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from proptrack.modules.common.filters import build_pagination


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """``{success: true, data, message?}`` envelope with camelCase payload"""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = jsonable_encoder(data, by_alias=True)
    if message:
        body["message"] = message
    return body


def paginated(
    data: List[Any],
    criteria: BaseModel,
    total: int,
    total_key: str,
) -> Dict[str, Any]:
    """List envelope: one page of rows, pagination block and the applied filters"""
    return {
        "success": True,
        "data": jsonable_encoder(data, by_alias=True),
        "pagination": build_pagination(criteria.page, criteria.limit, total, total_key),
        "filters": criteria.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"page", "limit"}
        ),
    }


def error_body(message: str, error: Optional[str] = None, **details: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error:
        body["error"] = error
    body.update(details)
    return body
