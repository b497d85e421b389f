"""Tolerant Markup.

A forgiving parser for loosely-formed XML/HTML-like markup, a mutable document
tree, and a formatter that renders the tree back as consistently indented
markup.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), reformat()
- Level 2: Configured processing - MarkupProcessor class and MarkupConfig
- Level 3: Building blocks - MarkupParser, MarkupFormatter, tree nodes
"""

__version__ = "0.1.0"
__author__ = "Tolerant Markup Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured processing
from .api import (
    MarkupProcessor,
    format_markup,
    load_document,
    parse,
    parse_file,
    parse_string,
    reformat,
    save_document,
)

# Building blocks for advanced usage
from .formatting import MarkupFormatter, StreamFormatter, StringFormatter
from .parsing import MarkupParser, ParseReport

# Configuration and errors
from .shared import (
    FormatterConfig,
    FormatterError,
    MarkupConfig,
    MarkupError,
    MarkupParseError,
    ParserConfig,
)

# Document tree
from .tree import (
    MarkupComment,
    MarkupDocument,
    MarkupElement,
    MarkupNode,
    MarkupText,
    TagAttribute,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions (progressive disclosure entry point)
    "parse",
    "parse_string",
    "parse_file",
    "format_markup",
    "reformat",
    "load_document",
    "save_document",

    # Level 2: Configured processing
    "MarkupProcessor",
    "MarkupConfig",
    "ParserConfig",
    "FormatterConfig",

    # Level 3: Building blocks
    "MarkupParser",
    "ParseReport",
    "MarkupFormatter",
    "StringFormatter",
    "StreamFormatter",

    # Document tree
    "MarkupNode",
    "MarkupDocument",
    "MarkupElement",
    "MarkupText",
    "MarkupComment",
    "TagAttribute",

    # Errors
    "MarkupError",
    "MarkupParseError",
    "FormatterError",
]
