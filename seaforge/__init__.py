"""Seaforge: package a Node.js project as a single executable application.

Runs the SEA build as five sequential, fail-fast stages:
  - Environment: platform, package.json, entry point
  - Bundle: optional esbuild bundling of node_modules dependencies
  - SEA Blob: sea-config.json upsert + ``node --experimental-sea-config``
  - Compose Binary: copy of the node binary + postject blob injection
  - Platform Finish: codesign on macOS, transient cleanup elsewhere
"""

__version__ = "0.1.0"

from seaforge.core.orchestrator import BuildOrchestrator

__all__ = ["BuildOrchestrator", "__version__"]
