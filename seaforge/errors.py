"""Error and warning taxonomy for the build pipeline.

Fatal errors derive from ``SeaBuildError``: the pipeline aborts at the first
one, with no retry and no rollback of side effects already committed.

Warnings derive from ``BuildWarning``: they are never raised, only collected
on the build state, logged, and listed in the final summary. They never change
the exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from seaforge.models.tools import ToolResult


class SeaBuildError(RuntimeError):
    """Base class for every fatal pipeline failure.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    tool_result:
        Captured output of the external tool that caused the failure, if any.
        Surfaced verbatim to the operator.
    """

    def __init__(self, message: str, *, tool_result: ToolResult | None = None) -> None:
        super().__init__(message)
        self.tool_result = tool_result

    @property
    def diagnostics(self) -> str:
        """Combined stdout/stderr of the failing tool, or an empty string."""
        if self.tool_result is None:
            return ""
        return self.tool_result.combined_output


class UnsupportedPlatformError(SeaBuildError):
    """The host OS is not Windows, macOS or Linux."""


class ManifestMissingError(SeaBuildError):
    """No manifest file at the project root."""


class ManifestParseError(SeaBuildError):
    """The manifest exists but is not a valid JSON object."""


class EntryPointMissingError(SeaBuildError):
    """No usable entry point: none declared and none found, or the declared one is absent."""


class ToolInstallError(SeaBuildError):
    """Installing a missing tool package into the project failed."""


class BundleError(SeaBuildError):
    """The dependency bundler exited non-zero."""


class BlobGenerationError(SeaBuildError):
    """The blob descriptor could not be written or the blob tool exited non-zero."""


class BinaryCopyError(SeaBuildError):
    """The runtime binary could not be duplicated to the output path."""


class BlobInjectionError(SeaBuildError):
    """The injector exited non-zero; the output binary is not distributable."""


class ToolTimeoutError(SeaBuildError, TimeoutError):
    """An external tool exceeded the configured timeout."""

    def __init__(
        self,
        message: str,
        *,
        tool_result: ToolResult | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(message, tool_result=tool_result)
        self.timeout = timeout


# ---------------------------------------------------------------------------
# Non-fatal
# ---------------------------------------------------------------------------


class BuildWarning(UserWarning):
    """Base class for non-fatal pipeline conditions."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class SignatureStripWarning(BuildWarning):
    """Removing the existing code signature failed (macOS)."""


class SigningWarning(BuildWarning):
    """Ad-hoc re-signing of the output binary failed (macOS)."""


class CleanupWarning(BuildWarning):
    """One or more transient artifacts could not be removed."""
