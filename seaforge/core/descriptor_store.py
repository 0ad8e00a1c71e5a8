"""Read-merge-write persistence for the blob descriptor.

The descriptor file is treated as a small key-value store with one merge rule:
known fields the pipeline owns are overwritten, everything else is preserved.
Re-running against an unmodified project produces byte-identical content.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from seaforge.errors import BlobGenerationError
from seaforge.models.descriptor import BlobDescriptor

logger = logging.getLogger(__name__)


class DescriptorStore:
    """Owns one descriptor file on disk.

    Parameters
    ----------
    path:
        Location of ``sea-config.json``.
    default_blob_filename:
        ``output`` value used when the file is created, or when an existing
        file does not name one.
    """

    def __init__(self, path: Path, default_blob_filename: str) -> None:
        self.path = path
        self._default_blob_filename = default_blob_filename

    def load_raw(self) -> dict[str, Any] | None:
        """Return the parsed file, or ``None`` if it does not exist."""
        if not self.path.is_file():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise BlobGenerationError(
                f"Cannot read blob descriptor {self.path}: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise BlobGenerationError(
                f"Blob descriptor {self.path} must contain a JSON object"
            )
        return data

    def upsert(self, main_entry_path: str) -> BlobDescriptor:
        """Create the descriptor or point its entry at *main_entry_path*.

        Only ``main`` is overwritten on an existing file; ``output`` is filled
        in when absent. The file is rewritten only if its content changes.
        """
        raw = self.load_raw()
        if raw is None:
            merged = BlobDescriptor(
                main_entry_path=main_entry_path,
                output_blob_filename=self._default_blob_filename,
            ).model_dump(by_alias=True)
            logger.info("Creating %s", self.path.name)
        else:
            merged = dict(raw)
            merged["main"] = main_entry_path
            merged.setdefault("output", self._default_blob_filename)

        try:
            descriptor = BlobDescriptor.model_validate(merged)
        except ValidationError as exc:
            raise BlobGenerationError(
                f"Blob descriptor {self.path} is invalid: {exc}"
            ) from exc

        content = serialize(merged)
        if self._current_text() != content:
            try:
                self.path.write_text(content, encoding="utf-8")
            except OSError as exc:
                raise BlobGenerationError(
                    f"Cannot write blob descriptor {self.path}: {exc}"
                ) from exc
            logger.debug("Wrote %s (main=%s)", self.path.name, main_entry_path)
        return descriptor

    def _current_text(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError:
            return None


def serialize(data: dict[str, Any]) -> str:
    """Deterministic on-disk form: 2-space indent, trailing newline."""
    return json.dumps(data, indent=2) + "\n"
