"""
Format adapter contract

The patch engine only ever sees a decoded KfmDocument; adapters turn raw
bytes into one and back.
"""
from typing import Protocol

from core.ir.kfm import KfmDocument


class FormatError(Exception):
    """Raw input is malformed or not supported by the adapter"""
    pass


class FormatAdapter(Protocol):
    """Codec between raw bytes and KfmDocument"""

    def decode(self, raw: bytes) -> KfmDocument:
        """Decode raw bytes; raises FormatError on malformed input"""
        ...

    def encode(self, document: KfmDocument) -> bytes:
        """Encode a document to raw bytes"""
        ...
