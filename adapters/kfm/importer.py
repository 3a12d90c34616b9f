"""
KFM YAML Importer
Maps the textual (YAML) form of a keyframe motion file to KFM-IR

Accepts both the full document (`header` + `body`) and a bare body, which
gets a default header.
"""
import logging
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from core.ir.kfm import KfmDocument, KfmHeader, KfmModel
from .format import FormatError

logger = logging.getLogger(__name__)


class KfmImporter:
    """Imports YAML keyframe motion text to KFM-IR"""

    def __init__(self, encoding: str = "utf-8"):
        """
        Initialize importer

        Args:
            encoding: Text encoding of the raw bytes
        """
        self.encoding = encoding

    def decode(self, raw: Union[bytes, str]) -> KfmDocument:
        """
        Decode YAML text into a document

        Args:
            raw: YAML bytes (or already decoded text)

        Returns:
            KfmDocument

        Raises:
            FormatError: text is not valid YAML or does not describe a valid document
        """
        data = self._load(raw)

        if "body" in data:
            document_data = data
        elif "anims" in data or "model" in data:
            # Bare body
            logger.debug("No header in source, using default header")
            document_data = {"header": KfmHeader().model_dump(), "body": data}
        else:
            raise FormatError("document has neither a 'body' nor an 'anims' section")

        try:
            document = KfmDocument.model_validate(document_data)
        except ValidationError as e:
            raise FormatError(f"invalid keyframe motion document: {e}") from e

        logger.info(f"Decoded document with {len(document.body.anims)} anim(s)")
        return document

    def decode_model(self, raw: Union[bytes, str]) -> KfmModel:
        """Decode and return only the body"""
        return self.decode(raw).body

    def _load(self, raw: Union[bytes, str]) -> Dict[str, Any]:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode(self.encoding)
            except UnicodeDecodeError as e:
                raise FormatError(f"source is not {self.encoding} text: {e}") from e

        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise FormatError(f"source is not valid YAML: {e}") from e

        if not isinstance(data, dict):
            raise FormatError("source must be a YAML mapping")
        return data
