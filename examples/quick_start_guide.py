#!/usr/bin/env python3
"""
Quick Start Guide for tolerant-markup.

Walks through parsing loosely-written markup, inspecting the diagnostics the
parser collected, editing the tree and pretty-printing the result.
Install the package first (``pip install -e .``).
"""

from tolerant_markup import FormatterConfig, MarkupConfig, MarkupDocument, format_markup
from tolerant_markup.api import get_adapter, parse_with_report

MESSY_PAGE = """<!DOCTYPE html><html><head><title>Shop</title></head>
<body><h1>Products</h1><ul id=items><li>Tea<li>Coffee</ul>
<p>Sale ends <b>today</b>!<br><img src="banner.png"></span></body></html>"""


def quick_start_example():
    """Quick start example showing basic usage."""

    print("🚀 QUICK START - tolerant-markup")
    print("=" * 45)

    # Step 1: Parse markup that a strict XML parser would reject
    print("\n📄 Step 1: Parsing loose markup")
    print("-" * 30)

    report = parse_with_report(MESSY_PAGE, correlation_id="quick-start")
    document = report.document

    print(f"✅ Parsed {report.element_count} elements")
    print(f"📏 Document depth: {report.metrics.max_depth}")
    print(f"🔎 Lookahead scans: {report.metrics.lookahead_scans}")

    # Step 2: Look at what the parser tolerated
    print("\n🔍 Step 2: Diagnostics")
    print("-" * 30)

    print(f"⚠️  Diagnostics: {len(report.diagnostics)}")
    for entry in report.diagnostics[:3]:  # Show first 3 entries
        print(f"  - {entry.severity.name}: {entry.message}")

    # Step 3: Edit the tree
    print("\n✏️  Step 3: Editing the tree")
    print("-" * 30)

    items = document.find("ul")
    items.create_element("li", "Cocoa")
    items.set_attribute("class", "products")
    print(f"✅ List now has {len(items.find_all('li'))} items")

    # Step 4: Pretty-print
    print("\n🖨️  Step 4: Formatting")
    print("-" * 30)

    print(format_markup(document, MarkupConfig(formatter=FormatterConfig.spaces(2))))

    # Step 5: Hand the tree to another library
    print("🔗 Step 5: ElementTree interop")
    print("-" * 30)

    adapter = get_adapter("elementtree")
    result = adapter.to_target(document)
    print(f"✅ Converted root <{result.converted_data.tag}> "
          f"({result.metadata['element_count']} nodes)")
    for warning in result.warnings:
        print(f"  - {warning}")


def build_from_scratch():
    """Build a document in code and render it."""

    print("\n🏗️  BUILDING A DOCUMENT")
    print("=" * 45)

    document = MarkupDocument.html()
    body = document.find("body")
    body.create_element("h1", "Hello")
    paragraph = body.add_element("p")
    paragraph.add_text("Built without parsing")
    paragraph.add_comment("rendered by format_markup")

    print(format_markup(document))


if __name__ == "__main__":
    quick_start_example()
    build_from_scratch()
