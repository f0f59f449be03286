"""Row-to-dataclass mapping with scalar coercion.

Database drivers disagree on column types (SQLite happily returns
``"1"`` for an INTEGER column written as text). Fields annotated
``int``, ``float``, ``bool`` or ``str`` are coerced; everything else is
passed through untouched. Extra columns in the row are ignored, so
``SELECT *`` works against a dataclass with fewer fields.
"""

import dataclasses
import types
from typing import Any, get_args, get_origin, get_type_hints

_COERCE: dict[type, Any] = {
    int: int,
    float: float,
    bool: lambda v: bool(int(v)) if isinstance(v, str) else bool(v),
    str: str,
}


def _targets(cls: type) -> dict[str, type | None]:
    """Map each field name to its coercion target (``None`` = leave alone)."""
    hints = get_type_hints(cls)
    targets: dict[str, type | None] = {}
    for f in dataclasses.fields(cls):
        annotation = hints.get(f.name, f.type)
        if get_origin(annotation) is types.UnionType:
            non_none = [a for a in get_args(annotation) if a is not type(None)]
            annotation = non_none[0] if len(non_none) == 1 else None
        targets[f.name] = annotation if annotation in _COERCE else None
    return targets


def _coerce(value: Any, target: type | None) -> Any:
    if target is None or value is None or isinstance(value, target):
        return value
    return _COERCE[target](value)


def _require_dataclass(cls: type) -> None:
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass: rows map to dataclasses only"
        raise TypeError(msg)


def map_row[T](cls: type[T], row: dict[str, Any]) -> T:
    """Build a *cls* instance from a row dict.

    Raises ``TypeError`` if *cls* is not a dataclass or a required field
    is missing from the row.
    """
    _require_dataclass(cls)
    targets = _targets(cls)
    return cls(**{k: _coerce(v, targets[k]) for k, v in row.items() if k in targets})


def map_rows[T](cls: type[T], rows: list[dict[str, Any]]) -> list[T]:
    """Map a list of row dicts, computing the coercion targets once."""
    _require_dataclass(cls)
    targets = _targets(cls)
    return [
        cls(**{k: _coerce(v, targets[k]) for k, v in row.items() if k in targets})
        for row in rows
    ]
