from __future__ import annotations
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field

# uncompressed_size is an int32 on the wire; inflate output is capped per tile anyway.
DEFAULT_MAX_TILE_SIZE = 2**31 - 1


class DecodeOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Off by default: existing files carry CRC fields that were never checked.
    verify_checksum: bool = False
    byte_order: Literal["little", "big"] = "little"
    max_tile_size: int = Field(DEFAULT_MAX_TILE_SIZE, gt=0)
