from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Union
from pydantic import BaseModel, Field
from .common import ChunkKind
from .file_header import FileHeader
from .options import DecodeOptions
from .tile import HealpixTile


class ChunkInfo(BaseModel):
    tag: str
    kind: ChunkKind
    offset: int = Field(..., ge=0)
    length: int = Field(..., ge=0)
    checksum: int = Field(..., ge=0)


class FileSummary(BaseModel):
    chunks: int = 0
    tiles: int = 0
    opaque_bytes: int = 0
    tiles_per_order: Dict[int, int] = Field(default_factory=dict)


class EpheFile(BaseModel):
    header: FileHeader = Field(default_factory=FileHeader)
    chunks: List[ChunkInfo] = Field(default_factory=list)
    tiles: List[HealpixTile] = Field(default_factory=list)

    @classmethod
    def from_binary(
        cls,
        data: Union[bytes, bytearray, memoryview, str, Path],
        options: DecodeOptions | None = None,
    ) -> "EpheFile":
        from ..binary.reader import parse_file
        return parse_file(data, options=options)
