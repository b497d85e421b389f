"""Configuration classes for tolerant markup processing.

This module provides configuration objects for decoding, parsing and
formatting, with presets and JSON loading for command-line use.
"""

import codecs
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

from .errors import ConfigurationError

# Tags rendered with a bare '>' when they have no children
DEFAULT_LOOSE_CLOSE_TAGS: FrozenSet[str] = frozenset({
    "!doctype", "?xml",
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

VALID_NEWLINES = ("\n", "\r\n", "\r")


def _is_known_encoding(name: str) -> bool:
    try:
        codecs.lookup(name)
    except LookupError:
        return False
    return True


@dataclass
class DecodingConfig:
    """Configuration for turning raw bytes into text."""

    fallback_encoding: str = "latin-1"
    detect_bom: bool = True
    sniff_declaration: bool = True
    declaration_sample_size: int = 1024

    def __post_init__(self) -> None:
        """Validate decoding configuration."""
        if not _is_known_encoding(self.fallback_encoding):
            raise ConfigurationError(
                f"Unknown fallback encoding: {self.fallback_encoding}"
            )
        if self.declaration_sample_size <= 0:
            raise ConfigurationError("declaration_sample_size must be > 0")


@dataclass
class ParserConfig:
    """Configuration for the markup parser."""

    decoding: DecodingConfig = field(default_factory=DecodingConfig)
    collect_diagnostics: bool = True
    flush_trailing_text: bool = True


@dataclass
class FormatterConfig:
    """Configuration for markup rendering."""

    indent: str = "\t"
    newline: str = "\n"
    loose_close_tags: FrozenSet[str] = DEFAULT_LOOSE_CLOSE_TAGS
    strict_text: bool = False

    def __post_init__(self) -> None:
        """Validate formatter configuration."""
        if self.indent.strip():
            raise ConfigurationError("indent must contain only whitespace")
        if self.newline not in VALID_NEWLINES:
            raise ConfigurationError(
                f"newline must be one of {VALID_NEWLINES!r}"
            )
        self.loose_close_tags = frozenset(
            tag.lower() for tag in self.loose_close_tags
        )

    @classmethod
    def tabs(cls) -> "FormatterConfig":
        """One tab per nesting level (the default)."""
        return cls()

    @classmethod
    def spaces(cls, width: int = 2) -> "FormatterConfig":
        """A fixed number of spaces per nesting level."""
        if width < 0:
            raise ConfigurationError("indent width must be >= 0")
        return cls(indent=" " * width)

    @classmethod
    def windows(cls) -> "FormatterConfig":
        """Tab indentation with CRLF line endings."""
        return cls(newline="\r\n")


@dataclass
class MarkupConfig:
    """Top-level configuration bundling parser and formatter settings."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    formatter: FormatterConfig = field(default_factory=FormatterConfig)
    correlation_id: Optional[str] = None

    @classmethod
    def default(cls) -> "MarkupConfig":
        """Create the default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarkupConfig":
        """Build a configuration from a plain dictionary.

        Unknown keys are ignored; missing keys keep their defaults.

        Args:
            data: Mapping with optional "decoding", "parser", "formatter"
                sections and a "correlation_id" value

        Returns:
            MarkupConfig instance
        """
        decoding_data = dict(data.get("decoding", {}))
        parser_data = dict(data.get("parser", {}))
        formatter_data = dict(data.get("formatter", {}))

        decoding = DecodingConfig(**{
            key: value for key, value in decoding_data.items()
            if key in DecodingConfig.__dataclass_fields__
        })
        parser = ParserConfig(decoding=decoding, **{
            key: value for key, value in parser_data.items()
            if key in ParserConfig.__dataclass_fields__ and key != "decoding"
        })

        if "indent_width" in formatter_data:
            formatter_data["indent"] = " " * int(formatter_data.pop("indent_width"))
        if "loose_close_tags" in formatter_data:
            formatter_data["loose_close_tags"] = frozenset(
                formatter_data["loose_close_tags"]
            )
        formatter = FormatterConfig(**{
            key: value for key, value in formatter_data.items()
            if key in FormatterConfig.__dataclass_fields__
        })

        return cls(
            parser=parser,
            formatter=formatter,
            correlation_id=data.get("correlation_id"),
        )

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "MarkupConfig":
        """Load configuration from a JSON file.

        Raises:
            ConfigurationError: If the file cannot be read or is not valid JSON
        """
        path = Path(config_path)
        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Could not load configuration from {path}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain an object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-friendly dictionary."""
        return {
            "decoding": {
                "fallback_encoding": self.parser.decoding.fallback_encoding,
                "detect_bom": self.parser.decoding.detect_bom,
                "sniff_declaration": self.parser.decoding.sniff_declaration,
                "declaration_sample_size": (
                    self.parser.decoding.declaration_sample_size
                ),
            },
            "parser": {
                "collect_diagnostics": self.parser.collect_diagnostics,
                "flush_trailing_text": self.parser.flush_trailing_text,
            },
            "formatter": {
                "indent": self.formatter.indent,
                "newline": self.formatter.newline,
                "loose_close_tags": sorted(self.formatter.loose_close_tags),
                "strict_text": self.formatter.strict_text,
            },
            "correlation_id": self.correlation_id,
        }
