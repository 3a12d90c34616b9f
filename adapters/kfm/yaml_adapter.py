"""
YAML format adapter
Pairs KfmImporter and KfmExporter behind the FormatAdapter contract
"""
from typing import Optional, Union

from core.ir.kfm import KfmDocument
from .importer import KfmImporter
from .exporter import KfmExporter


class YamlFormatAdapter:
    """FormatAdapter for the YAML form of keyframe motion files"""

    def __init__(self, importer: Optional[KfmImporter] = None, exporter: Optional[KfmExporter] = None):
        self.importer = importer or KfmImporter()
        self.exporter = exporter or KfmExporter()

    def decode(self, raw: Union[bytes, str]) -> KfmDocument:
        return self.importer.decode(raw)

    def encode(self, document: KfmDocument) -> bytes:
        return self.exporter.encode(document)
