"""Cascading encoding detection for markup sources.

Raw bytes are resolved to a text encoding by trying, in order: a byte order
mark, a charset declared in the markup itself (XML declaration or HTML meta
tag), strict UTF-8 validation and finally a configured fallback encoding.
Detection never fails; the fallback decodes any byte sequence.
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple

from tolerant_markup.shared.config import DecodingConfig

ASCII_MAX = 0x80

# Confidence scores per detection stage
CONFIDENCE_BOM = 1.0
CONFIDENCE_DECLARED = 0.9
CONFIDENCE_UTF8_ASCII = 1.0
CONFIDENCE_UTF8_VALID = 0.95
CONFIDENCE_FALLBACK = 0.5


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""
    BOM = "bom"
    DECLARATION = "declaration"
    UTF8_VALIDATION = "utf8_validation"
    FALLBACK = "fallback"


@dataclass
class EncodingResult:
    """Result of encoding detection with confidence scoring and metadata.

    Attributes:
        encoding: Detected encoding name (canonical form)
        confidence: Confidence score from 0.0 to 1.0
        method: Detection method used
        issues: List of issues found during detection
        bom_length: Number of leading bytes that form a byte order mark
    """
    encoding: str
    confidence: float
    method: DetectionMethod
    issues: List[str] = field(default_factory=list)
    bom_length: int = 0

    def __post_init__(self) -> None:
        """Validate confidence score range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )
        if self.bom_length < 0:
            raise ValueError("bom_length cannot be negative")


def normalize_encoding(encoding: str) -> str:
    """Normalize an encoding name to the form used throughout the package."""
    aliases = {
        "utf8": "utf-8",
        "utf16": "utf-16",
        "utf32": "utf-32",
        "iso-8859-1": "latin-1",
        "iso8859-1": "latin-1",
        "windows-1252": "cp1252",
    }
    lowered = encoding.strip().lower()
    return aliases.get(lowered, lowered)


def is_valid_encoding(encoding: str) -> bool:
    """Check if encoding is supported by Python codecs."""
    try:
        codecs.lookup(encoding)
    except LookupError:
        return False
    else:
        return True


class BOMDetector:
    """Byte Order Mark (BOM) detection for all major encodings."""

    # Longest patterns first so UTF-32 LE is not mistaken for UTF-16 LE
    BOM_PATTERNS: ClassVar[Tuple[Tuple[bytes, str], ...]] = (
        (b"\xff\xfe\x00\x00", "utf-32-le"),
        (b"\x00\x00\xfe\xff", "utf-32-be"),
        (b"\xef\xbb\xbf", "utf-8"),
        (b"\xff\xfe", "utf-16-le"),
        (b"\xfe\xff", "utf-16-be"),
    )

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding based on BOM.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if BOM detected, None otherwise
        """
        if not data:
            return None

        for bom_bytes, encoding in self.BOM_PATTERNS:
            if data.startswith(bom_bytes):
                return EncodingResult(
                    encoding=encoding,
                    confidence=CONFIDENCE_BOM,
                    method=DetectionMethod.BOM,
                    bom_length=len(bom_bytes),
                )

        return None


class DeclarationSniffer:
    """Finds a charset declared inside the markup header."""

    XML_DECLARATION_PATTERN = re.compile(
        rb'<\?xml\s+[^>]*?encoding\s*=\s*["\']([^"\']+)["\']',
        re.IGNORECASE
    )
    META_CHARSET_PATTERN = re.compile(
        rb'<meta\s[^>]*?charset\s*=\s*["\']?\s*([A-Za-z0-9_.:\-]+)',
        re.IGNORECASE
    )

    def __init__(self, sample_size: int = 1024) -> None:
        self.sample_size = sample_size

    def sniff(self, data: bytes) -> Tuple[Optional[EncodingResult], List[str]]:
        """Look for an XML declaration or HTML meta charset.

        Args:
            data: Byte data to analyze

        Returns:
            Tuple of the detection result (None when nothing usable was
            declared) and any issues found on the way
        """
        issues: List[str] = []
        if not data:
            return None, issues

        header = data[:self.sample_size]
        for pattern in (self.XML_DECLARATION_PATTERN, self.META_CHARSET_PATTERN):
            match = pattern.search(header)
            if not match:
                continue

            declared = match.group(1).decode("ascii", errors="ignore")
            encoding = normalize_encoding(declared)
            if not is_valid_encoding(encoding):
                issues.append(f"Invalid declared encoding: {declared}")
                continue

            return EncodingResult(
                encoding=encoding,
                confidence=CONFIDENCE_DECLARED,
                method=DetectionMethod.DECLARATION,
            ), issues

        return None, issues


class UTF8Validator:
    """Strict UTF-8 validation."""

    def validate(self, data: bytes) -> Optional[EncodingResult]:
        """Validate UTF-8 encoding.

        Args:
            data: Byte data to validate

        Returns:
            EncodingResult when the data decodes as UTF-8, None otherwise
        """
        if all(b < ASCII_MAX for b in data):
            return EncodingResult(
                encoding="utf-8",
                confidence=CONFIDENCE_UTF8_ASCII,
                method=DetectionMethod.UTF8_VALIDATION,
            )

        try:
            data.decode("utf-8", errors="strict")
        except UnicodeDecodeError:
            return None

        return EncodingResult(
            encoding="utf-8",
            confidence=CONFIDENCE_UTF8_VALID,
            method=DetectionMethod.UTF8_VALIDATION,
        )


class EncodingDetector:
    """Main encoding detection class with never-fail guarantee.

    Implements a cascading detection strategy:
    1. BOM detection
    2. Declared charset (XML declaration or HTML meta tag)
    3. Strict UTF-8 validation
    4. Fallback to the configured encoding
    """

    def __init__(self, config: Optional[DecodingConfig] = None) -> None:
        """Initialize detection components."""
        self.config = config or DecodingConfig()
        self.bom_detector = BOMDetector()
        self.declaration_sniffer = DeclarationSniffer(
            self.config.declaration_sample_size
        )
        self.utf8_validator = UTF8Validator()

    def detect(self, data: bytes) -> EncodingResult:
        """Detect encoding using the multi-stage detection cascade.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult with detected encoding and metadata
        """
        if not data:
            return EncodingResult(
                encoding="utf-8",
                confidence=1.0,
                method=DetectionMethod.FALLBACK,
            )

        if self.config.detect_bom:
            bom_result = self.bom_detector.detect(data)
            if bom_result is not None:
                return bom_result

        issues: List[str] = []
        if self.config.sniff_declaration:
            declared, issues = self.declaration_sniffer.sniff(data)
            if declared is not None:
                return declared

        utf8_result = self.utf8_validator.validate(data)
        if utf8_result is not None:
            utf8_result.issues.extend(issues)
            return utf8_result

        issues.append(
            f"Not valid UTF-8, using fallback {self.config.fallback_encoding}"
        )
        return EncodingResult(
            encoding=normalize_encoding(self.config.fallback_encoding),
            confidence=CONFIDENCE_FALLBACK,
            method=DetectionMethod.FALLBACK,
            issues=issues,
        )
