"""The SEA blob descriptor (``sea-config.json``)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BLOB_FILENAME = "sea-prep.blob"


class BlobDescriptor(BaseModel):
    """Declarative input to the blob tool.

    Field aliases are the on-disk JSON keys. Extra keys set by the user
    (assets, snapshot flags, ...) are allowed and preserved across rewrites.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    main_entry_path: str = Field(alias="main")
    output_blob_filename: str = Field(default=DEFAULT_BLOB_FILENAME, alias="output")
    experimental_warning_disabled: bool = Field(
        default=True, alias="disableExperimentalSEAWarning"
    )
