"""Durable storage for the local configuration override.

The override is a single JSON document under one key. Storage backends raise
on I/O problems; the store is responsible for logging and swallowing them.
"""

from pathlib import Path
from typing import Protocol


class OverrideStorage(Protocol):
    """Protocol for the single-key override store."""

    def read(self) -> str | None:
        """Return the stored text, or None when nothing is stored."""
        ...

    def write(self, text: str) -> None:
        """Replace the stored text."""
        ...

    def delete(self) -> None:
        """Remove the stored text; a no-op when nothing is stored."""
        ...


class FileOverrideStorage:
    """OverrideStorage backed by a JSON file.

    Example:
        storage = FileOverrideStorage(".showbridge/data_source_override.json")
        storage.write('{"listSourceChoice": "hybrid"}')
        storage.read()
        # '{"listSourceChoice": "hybrid"}'
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def read(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


class MemoryOverrideStorage:
    """Process-local OverrideStorage, for tests and ephemeral runs."""

    def __init__(self, text: str | None = None):
        self.text = text

    def read(self) -> str | None:
        return self.text

    def write(self, text: str) -> None:
        self.text = text

    def delete(self) -> None:
        self.text = None
