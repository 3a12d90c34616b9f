"""
KFM YAML Exporter
Maps KFM-IR to the textual (YAML) form of a keyframe motion file
"""
from typing import Any, Dict

import yaml

from core.ir.kfm import KfmDocument


class KfmExporter:
    """Exports KFM-IR documents to YAML text"""

    def __init__(self, encoding: str = "utf-8"):
        """
        Initialize exporter

        Args:
            encoding: Text encoding of the produced bytes
        """
        self.encoding = encoding

    def encode(self, document: KfmDocument) -> bytes:
        """
        Encode a document as YAML

        Fields that are unset (e.g. `ext` on default transitions) are omitted.

        Args:
            document: Document to encode

        Returns:
            YAML bytes
        """
        return self.to_text(document).encode(self.encoding)

    def to_text(self, document: KfmDocument) -> str:
        """Encode a document as YAML text"""
        return yaml.safe_dump(self.to_dict(document), sort_keys=False, default_flow_style=False)

    def to_dict(self, document: KfmDocument) -> Dict[str, Any]:
        """Plain-data form of a document, in field order"""
        return document.model_dump(mode="json", exclude_none=True)
