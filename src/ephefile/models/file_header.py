from __future__ import annotations
from pydantic import BaseModel

MAGIC = b"EPHE"
FILE_VERSION = 2


class FileHeader(BaseModel):
    magic: str = MAGIC.decode("ascii")
    version: int = FILE_VERSION
