"""Project manifest and resolved entry point models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ProjectManifest(BaseModel):
    """The fields of ``package.json`` the pipeline reads.

    Unknown keys are kept but never interpreted. Never mutated by the pipeline.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str | None = None
    main: str | None = None
    version: str | None = None


class EntryPoint(BaseModel):
    """An existing regular file inside the project root.

    ``relative`` is the POSIX-style path written into the blob descriptor;
    ``path`` is the absolute location on disk.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    relative: str

    @classmethod
    def from_path(cls, project_root: Path, path: Path) -> EntryPoint:
        absolute = path if path.is_absolute() else project_root / path
        absolute = absolute.resolve()
        try:
            relative = absolute.relative_to(project_root.resolve()).as_posix()
        except ValueError:
            relative = absolute.as_posix()
        return cls(path=absolute, relative=relative)

    @property
    def stem(self) -> str:
        return self.path.stem

    def exists(self) -> bool:
        return self.path.is_file()
