"""Character layer for tolerant markup processing.

This module provides encoding detection, source loading and decoding, and the
lookahead cursor the parser walks over the decoded text.
"""

from .cursor import SENTINEL, MarkupCursor
from .encoding import (
    BOMDetector,
    DeclarationSniffer,
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
    UTF8Validator,
)
from .stream import (
    DecodedText,
    InputType,
    TextDecoder,
    load_source_bytes,
    source_compression,
)

__all__ = [
    # Modules
    "cursor",
    "encoding",
    "stream",
    # Cursor
    "SENTINEL",
    "MarkupCursor",
    # Encoding detection
    "BOMDetector",
    "DeclarationSniffer",
    "DetectionMethod",
    "EncodingDetector",
    "EncodingResult",
    "UTF8Validator",
    # Decoding
    "DecodedText",
    "InputType",
    "TextDecoder",
    "load_source_bytes",
    "source_compression",
]
