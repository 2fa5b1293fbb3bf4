"""
Predicate helpers shared by the property, client and viewing list endpoints.

Each list endpoint turns a flat set of optional parameters into a list of
SQLAlchemy conditions: exact matches, inclusive ``min*``/``max*`` ranges,
case-insensitive substrings, ``IN`` sets and a free-text ``search`` clause.
Pagination is offset based with a separate count over the same predicate.
"""
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def add_exact(conditions: List[Any], column, value) -> None:
    if value is not None:
        conditions.append(column == getattr(value, "value", value))


def add_range(conditions: List[Any], column, minimum=None, maximum=None) -> None:
    """Inclusive bounds; either side may be open"""
    if minimum is not None:
        conditions.append(column >= minimum)
    if maximum is not None:
        conditions.append(column <= maximum)


def add_contains(conditions: List[Any], column, text: Optional[str]) -> None:
    """Case-insensitive substring match"""
    if text:
        conditions.append(column.ilike(f"%{_escape_like(text.strip())}%", escape="\\"))


def add_in(conditions: List[Any], column, values: Optional[Sequence[Any]]) -> None:
    if values:
        conditions.append(column.in_([getattr(v, "value", v) for v in values]))


def search_terms(search: Optional[str]) -> List[str]:
    return [term for term in (search or "").split() if term]


def add_search(conditions: List[Any], columns: Sequence[Any], search: Optional[str]) -> None:
    """A row matches when any search term appears in any of the text columns"""
    terms = search_terms(search)
    if not terms:
        return
    conditions.append(or_(*[
        column.ilike(f"%{_escape_like(term)}%", escape="\\")
        for term in terms
        for column in columns
    ]))


def split_csv(value: Optional[str]) -> List[str]:
    """``"a, b,,c"`` -> ``["a", "b", "c"]``"""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_sort(sort: Optional[str], columns: Dict[str, Any], default: str) -> List[Any]:
    """Translate ``field`` / ``-field`` (comma separated) into ORDER BY clauses.

    Unknown fields fall back to ``default``.
    """
    clauses = []
    for part in split_csv(sort) or [default]:
        descending = part.startswith("-")
        column = columns.get(part.lstrip("-+"))
        if column is None:
            continue
        clauses.append(column.desc() if descending else column.asc())

    if not clauses and sort != default:
        return parse_sort(default, columns, default)
    return clauses


def paginate(query: Query, order_by: Sequence[Any], page: int, limit: int) -> Tuple[List[Any], int]:
    """Return one page of rows plus the total count for the same predicate"""
    total = query.order_by(None).count()
    skip = (page - 1) * limit
    rows = query.order_by(*order_by).offset(skip).limit(limit).all()
    return rows, total


def build_pagination(page: int, limit: int, total: int, total_key: str) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        total_key: total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }
