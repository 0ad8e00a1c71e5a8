"""Build configuration — env-driven via pydantic-settings.

Reads from a .env file and SEAFORGE_* environment variables. Everything the
pipeline needs to know about its external collaborators (tool names, the
runtime binary, transient filenames, the tool timeout) lives here so that no
stage hardcodes them.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class BuildSettings(BaseSettings):
    """Tooling configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SEAFORGE_LOG_LEVEL=DEBUG
        export SEAFORGE_NODE_PATH=/opt/node-22/bin/node
        export SEAFORGE_TOOL_TIMEOUT_SECONDS=120

    Or via .env file::

        SEAFORGE_BUNDLER_PACKAGE=esbuild
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SEAFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Upper bound for every external tool invocation; 0 disables the bound.
    tool_timeout_seconds: float = 600.0

    # Runtime binary copied into the output. None means `node` on PATH.
    node_path: Path | None = None

    # External commands
    npm_command: str = "npm"
    npx_command: str = "npx"
    codesign_command: str = "codesign"
    bundler_package: str = "esbuild"
    injector_package: str = "postject"

    # Project layout
    manifest_filename: str = "package.json"
    dependency_dir: str = "node_modules"

    # Files produced by the pipeline, relative to the project root
    descriptor_filename: str = "sea-config.json"
    blob_filename: str = "sea-prep.blob"
    bundle_filename: str = "sea-bundle.js"

    @property
    def effective_timeout(self) -> float | None:
        """Timeout passed to the tool runner, ``None`` when unbounded."""
        if self.tool_timeout_seconds <= 0:
            return None
        return self.tool_timeout_seconds
