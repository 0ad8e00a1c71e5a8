"""Node toolchain access: the runtime binary and install-on-demand tool packages.

Tool packages (the bundler, the injector) live in the project's own
``node_modules`` and are run through ``npx``. A missing package is installed
with ``npm install --save-dev`` before first use.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from seaforge.config import BuildSettings
from seaforge.core.tool_runner import ToolRunner
from seaforge.errors import ToolInstallError
from seaforge.models.tools import ToolCommand

logger = logging.getLogger(__name__)


class NodeToolchain:
    """Builds commands for, and installs, the Node-side collaborators.

    Parameters
    ----------
    project_root:
        The project whose ``node_modules`` holds the tool packages.
    runner:
        Tool runner used for installation.
    settings:
        Command names, package names and the timeout.
    """

    def __init__(
        self, project_root: Path, runner: ToolRunner, settings: BuildSettings
    ) -> None:
        self.project_root = project_root
        self._runner = runner
        self._settings = settings

    # ------------------------------------------------------------------
    # Tool packages
    # ------------------------------------------------------------------

    @property
    def dependency_dir(self) -> Path:
        return self.project_root / self._settings.dependency_dir

    def is_installed(self, package: str) -> bool:
        """Whether *package* is present in the project's dependency tree."""
        return (self.dependency_dir / package / "package.json").is_file()

    def ensure(self, package: str) -> bool:
        """Install *package* as a dev dependency if it is missing.

        Returns ``True`` when an installation took place. Raises
        ``ToolInstallError`` if ``npm install`` fails.
        """
        if self.is_installed(package):
            logger.debug("%s already installed in %s", package, self.dependency_dir)
            return False

        logger.info("Installing %s into %s", package, self.project_root)
        result = self._runner.run(
            self.command(
                self._settings.npm_command,
                "install",
                "--save-dev",
                package,
                description=f"install {package}",
            )
        )
        if not result.ok:
            raise ToolInstallError(
                f"Could not install {package} (npm exited with {result.exit_code})",
                tool_result=result,
            )
        return True

    def npx(self, package: str, *args: str, description: str = "") -> ToolCommand:
        """Command that runs a locally installed tool package."""
        return self.command(
            self._settings.npx_command, package, *args,
            description=description or package,
        )

    def command(self, *argv: str, description: str = "") -> ToolCommand:
        """Command rooted at the project directory with the configured timeout."""
        return ToolCommand(
            argv=tuple(argv),
            cwd=self.project_root,
            timeout=self._settings.effective_timeout,
            description=description,
        )

    # ------------------------------------------------------------------
    # Runtime binary
    # ------------------------------------------------------------------

    def runtime_binary(self) -> Path | None:
        """The Node executable to copy and to generate the blob with.

        ``SEAFORGE_NODE_PATH`` wins; otherwise ``node`` on PATH. Returns
        ``None`` when neither resolves.
        """
        if self._settings.node_path is not None:
            return self._settings.node_path
        found = shutil.which("node")
        return Path(found) if found else None
