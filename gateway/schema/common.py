"""Types and helpers shared by the domain schema modules."""
import dataclasses
import math
from enum import Enum
from typing import Any, Dict, Optional

import strawberry
from strawberry.utils.str_converters import to_camel_case

@strawberry.type
class Pagination:
    page: int
    limit: int
    total: int
    pages: int

@strawberry.type
class MutationResponse:
    success: bool
    message: Optional[str] = None

def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default

def to_pagination(raw: Optional[Dict[str, Any]], page: Optional[int], limit: Optional[int],
                  count: int) -> Pagination:
    """Build pagination from the downstream block, filling gaps from the request arguments."""
    raw = raw if isinstance(raw, dict) else {}
    page_value = _int(raw.get("page"), page or 1)
    limit_value = _int(raw.get("limit"), limit or count or 0)
    total = _int(raw.get("total"), count)
    pages = _int(raw.get("pages"), math.ceil(total / limit_value) if limit_value else 0)
    return Pagination(page=page_value, limit=limit_value, total=total, pages=pages)

def to_payload(value: Any) -> Any:
    """Serialize a Strawberry input into the camelCase JSON the services expect.

    Unset (``None``) fields are dropped so partial updates stay partial.
    """
    if isinstance(value, list):
        return [to_payload(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        payload = {}
        for field in dataclasses.fields(value):
            item = getattr(value, field.name)
            if item is None or item is strawberry.UNSET:
                continue
            payload[to_camel_case(field.name)] = to_payload(item)
        return payload
    return value
