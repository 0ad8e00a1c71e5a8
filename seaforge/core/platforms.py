"""Host platform detection and the per-platform capability table.

Stages 4 and 5 consult ``capabilities_for()`` instead of branching on the
platform themselves.
"""

from __future__ import annotations

import sys

from pydantic import BaseModel, ConfigDict

from seaforge.errors import UnsupportedPlatformError
from seaforge.models.config import Platform

# Resource name the runtime looks up at startup.
SEA_BLOB_RESOURCE = "NODE_SEA_BLOB"

# Fuse string flipped by the injector so the runtime knows a blob is present.
SEA_SENTINEL_FUSE = "NODE_SEA_FUSE_fce680ab2cc467b6e072b8b5df1996b2"

# Mach-O segment that holds the blob on macOS.
MACHO_SEGMENT_NAME = "NODE_SEA"


class PlatformCapabilities(BaseModel):
    """What differs between platforms for composing and finishing a binary."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    needs_signature_handling: bool
    exec_suffix: str
    injector_extra_args: tuple[str, ...] = ()


PLATFORM_CAPABILITIES: dict[Platform, PlatformCapabilities] = {
    Platform.WINDOWS: PlatformCapabilities(
        platform=Platform.WINDOWS,
        needs_signature_handling=False,
        exec_suffix=".exe",
    ),
    Platform.MACOS: PlatformCapabilities(
        platform=Platform.MACOS,
        needs_signature_handling=True,
        exec_suffix="",
        injector_extra_args=("--macho-segment-name", MACHO_SEGMENT_NAME),
    ),
    Platform.LINUX: PlatformCapabilities(
        platform=Platform.LINUX,
        needs_signature_handling=False,
        exec_suffix="",
    ),
}


def capabilities_for(platform: Platform) -> PlatformCapabilities:
    return PLATFORM_CAPABILITIES[platform]


def detect_platform(sys_platform: str | None = None) -> Platform:
    """Map ``sys.platform`` onto a supported ``Platform``.

    Raises ``UnsupportedPlatformError`` for anything other than Windows,
    macOS or Linux.
    """
    name = sys_platform if sys_platform is not None else sys.platform
    if name == "win32":
        return Platform.WINDOWS
    if name == "darwin":
        return Platform.MACOS
    if name.startswith("linux"):
        return Platform.LINUX
    raise UnsupportedPlatformError(
        f"Unsupported platform {name!r}. Supported: Windows, macOS, Linux."
    )
