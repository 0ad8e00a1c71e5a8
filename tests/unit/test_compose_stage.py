"""Tests for Stage 4 — output naming, runtime copy and blob injection."""

from __future__ import annotations

from pathlib import Path

import pytest

from seaforge.config import BuildSettings
from seaforge.core.platforms import SEA_SENTINEL_FUSE, capabilities_for
from seaforge.core.toolchain import NodeToolchain
from seaforge.errors import BinaryCopyError, BlobInjectionError
from seaforge.models.build import BuildState
from seaforge.models.config import Platform
from seaforge.models.manifest import EntryPoint
from seaforge.stages.base import StageExecutionError
from seaforge.stages.s4_compose import ComposeStage, output_filename, project_relative


# ---------------------------------------------------------------------------
# Output naming
# ---------------------------------------------------------------------------


class TestOutputFilename:
    @pytest.mark.parametrize(
        ("platform", "include_version", "expected"),
        [
            (Platform.LINUX, False, "app"),
            (Platform.MACOS, False, "app"),
            (Platform.WINDOWS, False, "app.exe"),
            (Platform.LINUX, True, "app-2.1.0"),
            (Platform.WINDOWS, True, "app-2.1.0.exe"),
        ],
    )
    def test_names(self, platform: Platform, include_version: bool, expected: str):
        caps = capabilities_for(platform)
        assert output_filename(
            "app", caps, version="2.1.0", include_version=include_version
        ) == expected

    def test_version_requested_but_undeclared(self):
        caps = capabilities_for(Platform.WINDOWS)
        assert output_filename("app", caps, version=None, include_version=True) == "app.exe"


# ---------------------------------------------------------------------------
# Stage
# ---------------------------------------------------------------------------


@pytest.fixture
def blob_state(environment_state, node_project: Path):
    """State as it leaves the blob stage (the blob is a dummy file)."""

    def _factory(platform: Platform = Platform.LINUX, **config) -> BuildState:
        state = environment_state(platform, **config)
        blob = node_project / "sea-prep.blob"
        blob.write_bytes(b"SEA-BLOB")
        return state.model_copy(update={"blob_path": blob})

    return _factory


@pytest.fixture
def stage(settings, fake_runner, toolchain) -> ComposeStage:
    return ComposeStage(settings, fake_runner, toolchain)


def test_project_relative_paths(tmp_path: Path):
    assert project_relative(tmp_path / "build" / "app.blob", tmp_path) == "build/app.blob"
    outside = tmp_path.parent / "elsewhere.blob"
    assert project_relative(outside, tmp_path) == str(outside)


class TestComposeStage:
    def test_copies_and_injects(
        self, stage, blob_state, fake_runner, node_project: Path, node_binary: Path
    ):
        result = stage.run_stage(blob_state())

        output = node_project / "app"
        assert result.state.output is not None
        assert result.state.output.path == output
        assert output.read_bytes() == node_binary.read_bytes() + b"SEA-BLOB"

        install, inject = fake_runner.commands
        assert install.argv == ("npm", "install", "--save-dev", "postject")
        assert inject.argv == (
            "npx", "postject", "app", "NODE_SEA_BLOB", "sea-prep.blob",
            "--sentinel-fuse", SEA_SENTINEL_FUSE,
        )
        assert result.state.installed_tools == ("postject",)

    def test_injector_already_installed(
        self, stage, blob_state, fake_runner, node_project: Path, install_package
    ):
        install_package(node_project, "postject")
        stage.run_stage(blob_state())
        assert not fake_runner.ran("install")

    def test_macos_injection_uses_macho_segment(self, stage, blob_state, fake_runner):
        stage.run_stage(blob_state(Platform.MACOS))
        (inject,) = fake_runner.matching("--sentinel-fuse")
        assert inject.argv[-2:] == ("--macho-segment-name", "NODE_SEA")

    def test_windows_versioned_name(self, stage, blob_state, node_project: Path):
        result = stage.run_stage(blob_state(Platform.WINDOWS, include_version_in_name=True))
        assert result.state.output is not None
        assert result.state.output.name == "app-2.1.0.exe"
        assert (node_project / "app-2.1.0.exe").is_file()

    def test_name_comes_from_source_entry_not_bundle(
        self, stage, blob_state, node_project: Path
    ):
        bundle = node_project / "sea-bundle.js"
        bundle.write_text("", encoding="utf-8")
        state = blob_state().model_copy(
            update={"entry_point": EntryPoint.from_path(node_project, bundle), "bundled": True}
        )

        result = stage.run_stage(state)

        assert result.state.output is not None
        assert result.state.output.name == "app"

    def test_hook_runs_between_copy_and_injection(
        self, settings, fake_runner, toolchain, blob_state, node_project: Path
    ):
        seen = {}

        def hook(state: BuildState) -> BuildState:
            seen["binary_exists"] = (node_project / "app").is_file()
            seen["injected"] = fake_runner.ran("--sentinel-fuse")
            return state

        ComposeStage(settings, fake_runner, toolchain, before_inject=hook).run_stage(blob_state())

        assert seen == {"binary_exists": True, "injected": False}

    def test_injection_failure_leaves_binary(
        self, stage, blob_state, fake_runner, node_project: Path
    ):
        fake_runner.fail("--sentinel-fuse", exit_code=1, stderr="sentinel not found")

        with pytest.raises(BlobInjectionError, match="not distributable") as exc_info:
            stage.run_stage(blob_state())

        assert "sentinel not found" in exc_info.value.diagnostics
        assert (node_project / "app").is_file()

    def test_copy_failure(self, fake_runner, blob_state, tmp_path: Path, node_project: Path):
        broken = BuildSettings(_env_file=None, node_path=tmp_path / "no-such-node")
        stage = ComposeStage(broken, fake_runner, NodeToolchain(node_project, fake_runner, broken))

        with pytest.raises(BinaryCopyError, match="no-such-node"):
            stage.run_stage(blob_state())
        assert fake_runner.commands == []

    def test_blob_in_subdirectory_is_passed_relative_to_project(
        self, stage, blob_state, fake_runner, node_project: Path, node_binary: Path
    ):
        (node_project / "build").mkdir()
        blob = node_project / "build" / "app.blob"
        blob.write_bytes(b"NESTED-BLOB")
        state = blob_state().model_copy(update={"blob_path": blob})

        stage.run_stage(state)

        (inject,) = fake_runner.matching("--sentinel-fuse")
        assert inject.argv[4] == "build/app.blob"
        assert (inject.cwd / inject.argv[4]).is_file()
        assert (node_project / "app").read_bytes() == node_binary.read_bytes() + b"NESTED-BLOB"

    def test_extensionless_entry_is_never_overwritten(
        self, stage, blob_state, fake_runner, node_project: Path, write_manifest
    ):
        source = node_project / "server"
        source.write_text("console.log('server');\n", encoding="utf-8")
        write_manifest(node_project, name="demo", main="server")

        with pytest.raises(BinaryCopyError, match="overwrite the entry point"):
            stage.run_stage(blob_state())

        assert source.read_text(encoding="utf-8") == "console.log('server');\n"
        assert fake_runner.commands == []

    def test_output_name_taken_by_directory(
        self, stage, blob_state, fake_runner, node_project: Path
    ):
        (node_project / "app").mkdir()

        with pytest.raises(BinaryCopyError, match="existing directory"):
            stage.run_stage(blob_state())

        assert list((node_project / "app").iterdir()) == []
        assert fake_runner.commands == []

    def test_missing_blob_is_a_stage_error(self, stage, environment_state):
        with pytest.raises(StageExecutionError, match="SEA blob"):
            stage.run_stage(environment_state())
