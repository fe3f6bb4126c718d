from __future__ import annotations
from enum import Enum


class ChunkKind(str, Enum):
    HEALPIX_TILE = "healpix_tile"
    OPAQUE = "opaque"


def classify_tag(tag: bytes) -> ChunkKind:
    """Chunks whose tag starts with an uppercase ASCII letter hold HEALPix tiles."""
    if tag and ord("A") <= tag[0] <= ord("Z"):
        return ChunkKind.HEALPIX_TILE
    return ChunkKind.OPAQUE


def tag_to_str(tag: bytes) -> str:
    return tag.decode("latin-1")
