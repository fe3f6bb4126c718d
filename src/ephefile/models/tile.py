from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field


class TileHeader(BaseModel):
    tag: str = Field(..., min_length=4, max_length=4)
    version: int
    nuniq: int = Field(..., ge=4)
    order: int = Field(..., ge=0)
    pixel: int = Field(..., ge=0)
    uncompressed_size: int = Field(..., ge=0)
    compressed_size: int = Field(..., ge=0)
    offset: int = Field(..., ge=0)   # file offset of the chunk's tag


class HealpixTile(BaseModel):
    # Tile payloads are arbitrary binary; keep JSON output lossless.
    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    header: TileHeader
    data: bytes = Field(repr=False)
