from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional


def to_jsonable(value: Any) -> Any:
    """Recursively convert dates, decimals and enums to JSON-friendly values"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def snapshot(obj: Any, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Column values of an ORM object, for audit old/new values"""
    if fields is None:
        fields = [column.key for column in obj.__table__.columns]
    return {field: to_jsonable(getattr(obj, field, None)) for field in fields}
