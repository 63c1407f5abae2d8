"""Helpers that map inconsistent downstream JSON onto the graph's stable shapes."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

def entity_id(raw: Any) -> Optional[str]:
    """Stringify a downstream identifier (plain value or Mongo extended JSON ``{"$oid": ...}``)."""
    if raw is None:
        return None
    if isinstance(raw, dict):
        raw = raw.get("$oid")
        if raw is None:
            return None
    value = str(raw)
    return value or None

def iso_datetime(value: Any) -> Optional[str]:
    """Render a date-like value as an ISO-8601 UTC string; ``None`` when absent or unparseable.

    Accepts ISO strings (with or without ``Z``), ``datetime`` objects, epoch
    milliseconds, and Mongo extended JSON ``{"$date": ...}``. Naive values are
    treated as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        return iso_datetime(value.get("$date"))
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, bool):
            return None
        elif isinstance(value, (int, float)):
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        elif isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
        else:
            return None
    except (ValueError, OverflowError, OSError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def upper_enum(value: Any, default: str = "PENDING") -> str:
    """Upper-case a status string, falling back to ``default`` when empty."""
    if value is None:
        return default
    text = str(value).strip()
    return text.upper() if text else default

def payload_data(body: Any) -> Dict[str, Any]:
    """Unwrap the ``{"success", "message", "data"}`` envelope the domain services use."""
    if isinstance(body, dict):
        data = body.get("data", body)
        return data if isinstance(data, dict) else {}
    return {}

def pick(data: Dict[str, Any], key: str) -> Any:
    """``data[key]`` when the service nested the entity under ``key``, else ``data`` itself."""
    if isinstance(data, dict) and isinstance(data.get(key), dict):
        return data[key]
    return data

def items_of(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = data.get(key) if isinstance(data, dict) else None
    return [item for item in value if isinstance(item, dict)] if isinstance(value, list) else []
