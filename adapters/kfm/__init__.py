"""
Keyframe motion adapter
Decodes/encodes the textual form of keyframe motion files to and from KFM-IR
"""

from .format import FormatAdapter, FormatError
from .importer import KfmImporter
from .exporter import KfmExporter
from .yaml_adapter import YamlFormatAdapter

__all__ = ['FormatAdapter', 'FormatError', 'KfmImporter', 'KfmExporter', 'YamlFormatAdapter']
