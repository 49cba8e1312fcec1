"""Small record helpers."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MISSING = object()


def what_changed(record: Mapping[str, Any], data: Mapping[str, Any]) -> dict[str, Any] | None:
    """Return the entries of ``data`` that differ from ``record``.

    A key absent from ``record`` counts as changed even when the new value
    is ``None``.  Returns ``None`` when nothing changed.
    """
    changed = {k: v for k, v in data.items() if record.get(k, _MISSING) != v}
    return changed or None
