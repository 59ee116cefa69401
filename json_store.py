from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def loads_strict(raw: str | bytes) -> Any:
    """
    Parse JSON text the way browsers do.

    Unlike json.loads, NaN / Infinity / -Infinity are rejected.
    Raises ValueError on any malformed input.
    """
    return json.loads(raw, parse_constant=_reject_constant)


def _finite_float(raw: str) -> float | None:
    value = float(raw)
    # Overflowing literals such as 1e400 become null, as JSON.stringify writes them.
    return value if math.isfinite(value) else None


def loads_payload(raw: str | bytes) -> Any:
    """
    Parse a request payload that is about to be stored and echoed back.

    Same as loads_strict, plus: overflowing numbers become None, and text that
    cannot be re-encoded as UTF-8 (lone surrogate escapes) or is nested beyond
    the interpreter's recursion limit raises ValueError.
    """
    try:
        value = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
        json.dumps(value, ensure_ascii=False).encode("utf-8")
    except RecursionError as e:
        raise ValueError("JSON nested too deeply") from e
    return value


def is_valid_json(raw: str) -> bool:
    try:
        loads_strict(raw)
    except ValueError:
        return False
    return True


def read_json(path: Path) -> Any | None:
    """
    Read JSON from disk.

    Returns None for missing or empty files. Malformed JSON raises ValueError
    so a corrupt store is never silently treated as empty.
    """
    if not path.exists():
        return None
    raw = path.read_text(encoding="utf-8")
    if not raw.strip():
        return None
    return json.loads(raw)


def atomic_write_json(path: Path, payload: Any, *, indent: int = 2, sort_keys: bool = True) -> None:
    """
    Atomically write JSON to disk by writing to a temp file then replacing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=indent, sort_keys=sort_keys)
        f.write("\n")
    tmp_path.replace(path)
