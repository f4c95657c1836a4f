import json
from decimal import Decimal
from pathlib import Path
from typing import Any


def loads(text: str | bytes) -> Any:
    """Parse JSON text keeping every fractional number as a ``Decimal``."""

    return json.loads(text, parse_float=Decimal)


def dumps(payload: Any) -> str:
    """
    Serialize ``payload`` as compact JSON.

    ``Decimal`` values are written as strings, which is how the service carries
    every amount, rate and quantity. Non-ASCII text (item names, addresses) is
    kept verbatim.
    """
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=_default)


def load_json_file(path: Path | str) -> Any:
    with open(path, encoding="utf-8") as f:
        return loads(f.read())


def _default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return format(value, "f")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def join_path(parent: str, name: str | int) -> str:
    """
    Build a violation path such as ``goodsDetails[1].total``.

    Integers are rendered as array indexes, strings as dotted keys.

    Example:
        >>> join_path("goodsDetails", 1)
        'goodsDetails[1]'
        >>> join_path("goodsDetails[1]", "total")
        'goodsDetails[1].total'
    """
    if isinstance(name, int):
        return f"{parent}[{name}]"
    if not parent:
        return name
    return f"{parent}.{name}"
