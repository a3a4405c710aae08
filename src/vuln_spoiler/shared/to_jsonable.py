from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any


def to_jsonable(obj: Any) -> Any:
    """Convert domain objects to a JSON-serializable structure.

    Handles:
    - Basic types (str, int, float, bool, None)
    - Collections (list, tuple, dict)
    - Dataclasses (field order preserved)
    - Pydantic models
    - Paths and datetimes (as strings)
    - Objects with __dict__

    Args:
        obj: Any Python object

    Returns:
        A JSON-serializable version of the object
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
    if hasattr(obj, "model_dump"):
        return to_jsonable(obj.model_dump())
    if hasattr(obj, "__dict__"):
        return to_jsonable(vars(obj))
    return str(obj)
