"""Source loading and decoding for markup input.

This module turns whatever the caller hands in (text, bytes, file objects or
paths to plain, gzip-compressed or zip-packaged files) into decoded text plus
the encoding that was used, so the document can later be saved the same way.
"""

import gzip
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, TextIO, Union

from tolerant_markup.shared.config import DecodingConfig
from tolerant_markup.shared.logging import get_logger
from .encoding import DetectionMethod, EncodingDetector, EncodingResult

# Type definitions for input data
InputType = Union[bytes, str, BinaryIO, TextIO]
PathType = Union[str, Path]

GZIP_MAGIC = b"\x1f\x8b"


@dataclass
class DecodedText:
    """Decoded markup text with the encoding it was read in.

    Attributes:
        text: Decoded text, never including byte order mark bytes
        encoding: Encoding used to decode the text
        detection: Full detection result
        metadata: Additional decoding metadata
    """
    text: str
    encoding: str
    detection: EncodingResult
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def issues(self) -> List[str]:
        """Issues reported during detection."""
        return self.detection.issues


class TextDecoder:
    """Decodes markup input of any supported type into text."""

    def __init__(
        self,
        config: Optional[DecodingConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the decoder.

        Args:
            config: Decoding configuration
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or DecodingConfig()
        self._detector = EncodingDetector(self.config)
        self.logger = get_logger(__name__, correlation_id, "decoder")

    def decode(self, data: InputType, encoding: Optional[str] = None) -> DecodedText:
        """Decode input data.

        Args:
            data: Text, bytes or a readable file object
            encoding: Explicit encoding overriding detection for byte input

        Returns:
            DecodedText with the text and detection metadata

        Raises:
            TypeError: If the input type is not supported
        """
        if hasattr(data, "read"):
            data = data.read()

        if isinstance(data, str):
            return self._decode_string(data, encoding)
        if isinstance(data, (bytes, bytearray)):
            return self._decode_bytes(bytes(data), encoding)

        raise TypeError(f"Unsupported input type: {type(data).__name__}")

    def _decode_string(self, text: str, encoding: Optional[str]) -> DecodedText:
        detection = EncodingResult(
            encoding=encoding or "utf-8",
            confidence=1.0,
            method=DetectionMethod.FALLBACK,
        )
        return DecodedText(
            text=text,
            encoding=detection.encoding,
            detection=detection,
            metadata={"input_type": "str", "input_size": len(text)},
        )

    def _decode_bytes(self, data: bytes, encoding: Optional[str]) -> DecodedText:
        if encoding:
            detection = self._detector.bom_detector.detect(data)
            bom_length = detection.bom_length if detection else 0
            detection = EncodingResult(
                encoding=encoding,
                confidence=1.0,
                method=DetectionMethod.FALLBACK,
                bom_length=bom_length,
            )
        else:
            detection = self._detector.detect(data)

        for issue in detection.issues:
            self.logger.debug(
                "Encoding detection issue",
                extra={"issue": issue, "encoding": detection.encoding}
            )

        text = data[detection.bom_length:].decode(
            detection.encoding, errors="replace"
        )
        if "\ufffd" in text:
            detection.issues.append(
                "Some bytes could not be decoded and were replaced"
            )

        return DecodedText(
            text=text,
            encoding=detection.encoding,
            detection=detection,
            metadata={
                "input_type": "bytes",
                "input_size": len(data),
                "output_size": len(text),
            },
        )


def source_compression(path: PathType) -> Optional[str]:
    """Name the container format of a source file.

    Returns:
        ``"gzip"``, ``"zip"`` or None for a plain file

    Raises:
        OSError: If the file cannot be read
    """
    source = Path(path)
    with source.open("rb") as f:
        if f.read(len(GZIP_MAGIC)) == GZIP_MAGIC:
            return "gzip"
    if zipfile.is_zipfile(source):
        return "zip"
    return None


def load_source_bytes(path: PathType) -> bytes:
    """Read a markup source file.

    Gzip-compressed files are decompressed and zip archives yield the
    content of their first entry; anything else is returned as read.

    Args:
        path: Path to the source file

    Returns:
        Raw bytes of the markup

    Raises:
        OSError: If the file cannot be read
        ValueError: If a zip archive has no entries
    """
    source = Path(path)
    compression = source_compression(source)

    if compression == "gzip":
        with source.open("rb") as f:
            return gzip.decompress(f.read())

    if compression == "zip":
        with zipfile.ZipFile(source) as archive:
            entries = [info for info in archive.infolist() if not info.is_dir()]
            if not entries:
                raise ValueError(f"Zip archive {source} contains no files")
            return archive.read(entries[0])

    with source.open("rb") as f:
        return f.read()
