from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol


class KeyValueDocumentStore(Protocol):
    """
    One JSON object holding every settings row, keyed by settings id.

    Row-level repositories only need whole-document reads plus a locked
    read-modify-write; a database-backed store could map `transaction()`
    onto a real transaction.
    """

    def load(self) -> dict[str, Any]:
        """Current document; an empty dict when nothing has been written yet."""
        ...

    def save(self, doc: dict[str, Any]) -> None:
        ...

    def transaction(self) -> AbstractContextManager[dict[str, Any]]:
        """Yield the document for in-place edits; commit on clean exit, discard on error."""
        ...
