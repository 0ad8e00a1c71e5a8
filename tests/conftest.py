"""Shared test fixtures for Seaforge."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from seaforge.config import BuildSettings
from seaforge.core.orchestrator import BuildOrchestrator
from seaforge.core.toolchain import NodeToolchain
from seaforge.errors import ToolTimeoutError
from seaforge.models.build import BuildState
from seaforge.models.config import PipelineConfig, Platform
from seaforge.models.tools import ToolCommand, ToolResult
from seaforge.stages.s1_environment import EnvironmentStage

FAKE_NODE_BYTES = b"\x7fELF fake node runtime\n"


class FakeToolRunner:
    """Records every command and answers with scripted results.

    Commands are matched by a token that appears in their argv
    (``"install"``, ``"--bundle"``, ``"--experimental-sea-config"``,
    ``"--sentinel-fuse"``, ``"--remove-signature"``, ``"--sign"``).
    Successful commands reproduce the side effect the real tool would have
    on disk, so the stages that check for their outputs keep working.
    """

    def __init__(self) -> None:
        self.commands: list[ToolCommand] = []
        self._failures: dict[str, tuple[int, str]] = {}
        self._timeouts: set[str] = set()

    # ------------------------------------------------------------------
    # Scripting
    # ------------------------------------------------------------------

    def fail(self, token: str, exit_code: int = 1, stderr: str = "tool exploded") -> None:
        self._failures[token] = (exit_code, stderr)

    def time_out(self, token: str) -> None:
        self._timeouts.add(token)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def matching(self, token: str) -> list[ToolCommand]:
        return [c for c in self.commands if token in c.argv]

    def ran(self, token: str) -> bool:
        return bool(self.matching(token))

    # ------------------------------------------------------------------
    # ToolRunner protocol
    # ------------------------------------------------------------------

    def run(self, command: ToolCommand) -> ToolResult:
        self.commands.append(command)

        for token in self._timeouts:
            if token in command.argv:
                raise ToolTimeoutError(
                    f"{command.display()} timed out",
                    tool_result=ToolResult(command=command, exit_code=-1),
                    timeout=command.timeout,
                )
        for token, (exit_code, stderr) in self._failures.items():
            if token in command.argv:
                return ToolResult(command=command, exit_code=exit_code, stderr=stderr)

        error = self._apply_side_effects(command)
        if error:
            return ToolResult(command=command, exit_code=1, stderr=error)
        return ToolResult(command=command, exit_code=0, stdout="ok")

    def _apply_side_effects(self, command: ToolCommand) -> str | None:
        """Mimic the tool on disk; return an error message where it would fail."""
        argv = command.argv
        cwd = command.cwd
        if "install" in argv:
            package_dir = cwd / "node_modules" / argv[-1]
            package_dir.mkdir(parents=True, exist_ok=True)
            (package_dir / "package.json").write_text(
                json.dumps({"name": argv[-1]}), encoding="utf-8"
            )
        elif "--bundle" in argv:
            outfile = next(a for a in argv if a.startswith("--outfile="))
            (cwd / outfile.split("=", 1)[1]).write_text(
                "// bundled\n", encoding="utf-8"
            )
        elif "--experimental-sea-config" in argv:
            descriptor = json.loads((cwd / argv[-1]).read_text(encoding="utf-8"))
            (cwd / descriptor["output"]).write_bytes(b"SEA-BLOB")
        elif "--sentinel-fuse" in argv:
            # npx postject <binary> NODE_SEA_BLOB <blob> ...
            blob = cwd / argv[4]
            if not blob.is_file():
                return f"Can't read resource file: {argv[4]}"
            with open(cwd / argv[2], "ab") as binary:
                binary.write(blob.read_bytes())
        return None


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_seaforge_logger() -> Iterator[None]:
    """The CLI installs its own handler; undo it so caplog keeps working."""
    logger = logging.getLogger("seaforge")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# ---------------------------------------------------------------------------
# Project and toolchain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_runner() -> FakeToolRunner:
    """Provide a fresh scripted tool runner."""
    return FakeToolRunner()


@pytest.fixture
def node_binary(tmp_path: Path) -> Path:
    """Provide a stand-in Node runtime outside the project directory."""
    runtime_dir = tmp_path / "runtime"
    runtime_dir.mkdir()
    binary = runtime_dir / "node"
    binary.write_bytes(FAKE_NODE_BYTES)
    return binary


@pytest.fixture
def settings(node_binary: Path) -> BuildSettings:
    """Provide settings pinned to the fake runtime, ignoring any .env file."""
    return BuildSettings(_env_file=None, node_path=node_binary)


@pytest.fixture
def write_manifest() -> Callable[..., Path]:
    """Factory fixture: write a package.json into a directory."""

    def _write(project: Path, **fields: Any) -> Path:
        path = project / "package.json"
        path.write_text(json.dumps(fields, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def node_project(tmp_path: Path, write_manifest: Callable[..., Path]) -> Path:
    """Provide a minimal project: package.json (name, version) + app.js."""
    project = tmp_path / "project"
    project.mkdir()
    write_manifest(project, name="demo", version="2.1.0")
    (project / "app.js").write_text("console.log('hello');\n", encoding="utf-8")
    return project


@pytest.fixture
def install_package() -> Callable[[Path, str], Path]:
    """Factory fixture: make a tool package look installed in node_modules."""

    def _install(project: Path, package: str) -> Path:
        package_dir = project / "node_modules" / package
        package_dir.mkdir(parents=True, exist_ok=True)
        (package_dir / "package.json").write_text("{}", encoding="utf-8")
        return package_dir

    return _install


@pytest.fixture
def toolchain(
    node_project: Path, fake_runner: FakeToolRunner, settings: BuildSettings
) -> NodeToolchain:
    return NodeToolchain(node_project, fake_runner, settings)


@pytest.fixture
def make_state(node_project: Path) -> Callable[..., BuildState]:
    """Factory fixture: a BuildState for the project with config overrides."""

    def _factory(platform: Platform = Platform.LINUX, **config: Any) -> BuildState:
        config.setdefault("project_root", node_project)
        return BuildState(config=PipelineConfig(platform=platform, **config))

    return _factory


@pytest.fixture
def environment_state(
    settings: BuildSettings, make_state: Callable[..., BuildState]
) -> Callable[..., BuildState]:
    """Factory fixture: the state as it leaves the environment stage."""

    def _factory(platform: Platform = Platform.LINUX, **config: Any) -> BuildState:
        return EnvironmentStage(settings).run_stage(make_state(platform, **config)).state

    return _factory


@pytest.fixture
def make_orchestrator(
    node_project: Path, fake_runner: FakeToolRunner, settings: BuildSettings
) -> Callable[..., BuildOrchestrator]:
    """Factory fixture: an orchestrator over the fake runner, platform pinned."""

    def _factory(platform: Platform = Platform.LINUX, **config: Any) -> BuildOrchestrator:
        config.setdefault("project_root", node_project)
        return BuildOrchestrator(
            PipelineConfig(platform=platform, **config),
            settings=settings,
            runner=fake_runner,
        )

    return _factory
