"""Tests for the Pydantic data models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from seaforge.errors import (
    BlobInjectionError,
    CleanupWarning,
    SeaBuildError,
    SigningWarning,
    ToolTimeoutError,
)
from seaforge.models.build import BuildState
from seaforge.models.config import PipelineConfig, Platform
from seaforge.models.descriptor import BlobDescriptor
from seaforge.models.manifest import EntryPoint
from seaforge.models.tools import ToolCommand, ToolResult


class TestEntryPoint:
    def test_relative_is_posix(self, tmp_path: Path):
        entry = EntryPoint.from_path(tmp_path, Path("src") / "main.js")
        assert entry.relative == "src/main.js"
        assert entry.path == (tmp_path / "src" / "main.js").resolve()
        assert entry.stem == "main"

    def test_exists_only_for_files(self, tmp_path: Path):
        (tmp_path / "app.js").write_text("", encoding="utf-8")
        assert EntryPoint.from_path(tmp_path, Path("app.js")).exists()
        assert not EntryPoint.from_path(tmp_path, Path("index.js")).exists()


class TestBlobDescriptor:
    def test_aliases_round_trip(self):
        descriptor = BlobDescriptor.model_validate({"main": "app.js", "output": "x.blob"})
        assert descriptor.main_entry_path == "app.js"
        assert descriptor.model_dump(by_alias=True) == {
            "main": "app.js",
            "output": "x.blob",
            "disableExperimentalSEAWarning": True,
        }

    def test_extra_keys_preserved(self):
        descriptor = BlobDescriptor.model_validate({"main": "a.js", "useSnapshot": False})
        assert descriptor.model_dump(by_alias=True)["useSnapshot"] is False

    def test_main_required(self):
        with pytest.raises(ValidationError):
            BlobDescriptor.model_validate({"output": "x.blob"})


class TestBuildState:
    def test_frozen(self, tmp_path: Path):
        state = BuildState(config=PipelineConfig(project_root=tmp_path))
        with pytest.raises(ValidationError):
            state.bundled = True  # type: ignore[misc]

    def test_with_warning_appends(self, tmp_path: Path):
        state = BuildState(config=PipelineConfig(project_root=tmp_path))
        first, second = SigningWarning("a"), CleanupWarning("b")
        updated = state.with_warning(first).with_warning(second)
        assert updated.warnings == (first, second)
        assert state.warnings == ()

    def test_with_installed_tool_is_idempotent(self, tmp_path: Path):
        state = BuildState(config=PipelineConfig(project_root=tmp_path))
        updated = state.with_installed_tool("esbuild").with_installed_tool("esbuild")
        assert updated.installed_tools == ("esbuild",)

    def test_project_root(self, tmp_path: Path):
        state = BuildState(config=PipelineConfig(project_root=tmp_path, platform=Platform.LINUX))
        assert state.project_root == tmp_path


class TestErrors:
    def test_diagnostics_from_tool_result(self, tmp_path: Path):
        result = ToolResult(
            command=ToolCommand(argv=("npx", "postject"), cwd=tmp_path),
            exit_code=1,
            stdout="progress\n",
            stderr="failed\n",
        )
        error = BlobInjectionError("inject failed", tool_result=result)
        assert isinstance(error, SeaBuildError)
        assert error.diagnostics == "progress\nfailed"

    def test_no_diagnostics_without_tool(self):
        assert SeaBuildError("x").diagnostics == ""

    def test_timeout_is_both_kinds(self):
        error = ToolTimeoutError("slow", timeout=5.0)
        assert isinstance(error, SeaBuildError)
        assert isinstance(error, TimeoutError)
        assert error.timeout == 5.0

    def test_warning_kind(self):
        assert CleanupWarning("x").kind == "CleanupWarning"
