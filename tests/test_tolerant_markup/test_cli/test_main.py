"""Tests for the command-line interface."""

import gzip
import json
import logging
import zipfile

import pytest

from tolerant_markup import __version__, parse
from tolerant_markup.cli import main
from tolerant_markup.cli.main import (
    create_argument_parser,
    format_check_results,
    outline,
)


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo the logging setup performed by main()."""
    package_logger = logging.getLogger("tolerant_markup")
    original_level = package_logger.level
    original_handlers = list(package_logger.handlers)
    yield
    package_logger.setLevel(original_level)
    package_logger.handlers = original_handlers


@pytest.fixture
def list_file(tmp_path):
    path = tmp_path / "list.html"
    path.write_text("<ul><li>A</li><li>B</li></ul>", encoding="utf-8")
    return path


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("plain text", encoding="utf-8")
    return path


class TestArgumentParser:
    """Test argument parsing."""

    def test_format_arguments(self):
        """Test parsing the format command."""
        args = create_argument_parser().parse_args(
            ["-q", "format", "a.html", "b.html", "--indent", "2", "-i"]
        )
        assert args.command == "format"
        assert [str(p) for p in args.paths] == ["a.html", "b.html"]
        assert args.indent == 2
        assert args.in_place
        assert args.quiet

    def test_check_default_format(self):
        """Test that check defaults to text output."""
        args = create_argument_parser().parse_args(["check", "a.html"])
        assert args.format == "text"

    def test_version(self, capsys):
        """Test --version."""
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestMain:
    """Test top-level dispatch."""

    def test_no_command(self, capsys):
        """Test that running without a command prints help."""
        assert main([]) == 1
        assert "usage:" in capsys.readouterr().out

    def test_invalid_config_file(self, tmp_path, list_file, capsys):
        """Test that an unreadable configuration exits with 2."""
        config_path = tmp_path / "config.json"
        config_path.write_text("not json", encoding="utf-8")
        assert main(["-c", str(config_path), "format", str(list_file)]) == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_negative_indent(self, list_file, capsys):
        """Test that a negative indent is rejected."""
        assert main(["format", str(list_file), "--indent", "-1"]) == 2

    def test_config_file_applied(self, tmp_path, list_file, capsys):
        """Test formatting with settings from a configuration file."""
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"formatter": {"indent": "    "}}), encoding="utf-8")
        assert main(["-c", str(config_path), "format", str(list_file)]) == 0
        assert capsys.readouterr().out == "<ul>\n    <li>A</li>\n    <li>B</li>\n</ul>\n"


class TestFormatCommand:
    """Test the format command."""

    def test_format_to_stdout(self, list_file, capsys):
        """Test writing formatted markup to stdout."""
        assert main(["format", str(list_file)]) == 0
        assert capsys.readouterr().out == "<ul>\n\t<li>A</li>\n\t<li>B</li>\n</ul>\n"

    def test_indent_option(self, list_file, capsys):
        """Test space indentation from the command line."""
        assert main(["format", str(list_file), "--indent", "2"]) == 0
        assert capsys.readouterr().out == "<ul>\n  <li>A</li>\n  <li>B</li>\n</ul>\n"

    def test_output_file(self, tmp_path, list_file, capsys):
        """Test writing to an output file."""
        output = tmp_path / "out.html"
        assert main(["format", str(list_file), "-o", str(output)]) == 0
        assert output.read_text(encoding="utf-8").startswith("<ul>\n\t<li>A</li>")
        assert "Output written to" in capsys.readouterr().err

    def test_in_place(self, list_file, capsys):
        """Test rewriting the file itself."""
        assert main(["format", "--in-place", str(list_file)]) == 0
        assert list_file.read_text(encoding="utf-8") == (
            "<ul>\n\t<li>A</li>\n\t<li>B</li>\n</ul>\n"
        )
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Formatted:" in captured.err

    def test_non_markup_fails(self, text_file, capsys):
        """Test that a non-markup file fails the command."""
        assert main(["format", str(text_file)]) == 1
        assert "Cannot format" in capsys.readouterr().err

    def test_raw_on_error(self, list_file, text_file, capsys):
        """Test passing a non-markup file through unchanged."""
        assert main(["format", "--raw-on-error", str(text_file), str(list_file)]) == 0
        assert capsys.readouterr().out == (
            "plain text<ul>\n\t<li>A</li>\n\t<li>B</li>\n</ul>\n"
        )

    def test_raw_on_error_in_place(self, text_file):
        """Test that in-place mode leaves non-markup files untouched."""
        assert main(["format", "-i", "--raw-on-error", str(text_file)]) == 0
        assert text_file.read_text(encoding="utf-8") == "plain text"

    def test_missing_file(self, tmp_path, capsys):
        """Test a path that does not exist."""
        assert main(["format", str(tmp_path / "missing.html")]) == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_in_place_keeps_gzip_source(self, tmp_path, list_file, capsys):
        """Test that a gzip file is not overwritten with plain markup."""
        path = tmp_path / "page.html.gz"
        packed = gzip.compress(b"<ul><li>A</li></ul>")
        path.write_bytes(packed)

        assert main(["format", "-i", str(path), str(list_file)]) == 1

        assert path.read_bytes() == packed
        assert "in place: gzip source" in capsys.readouterr().err
        assert list_file.read_text(encoding="utf-8").startswith("<ul>\n\t<li>A</li>")

    def test_in_place_keeps_zip_archive(self, tmp_path, capsys):
        """Test that a zip archive keeps all of its entries."""
        path = tmp_path / "pages.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("first.html", "<p>one</p>")
            archive.writestr("second.html", "<p>two</p>")
        packed = path.read_bytes()

        assert main(["format", "--in-place", str(path)]) == 1

        assert path.read_bytes() == packed
        assert zipfile.is_zipfile(path)
        assert "in place: zip source" in capsys.readouterr().err

    def test_strict_text_failure_keeps_file(self, tmp_path, capsys):
        """Test that a strict rendering error is reported and the file kept."""
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps({"formatter": {"strict_text": True}}), encoding="utf-8"
        )
        path = tmp_path / "loose.html"
        path.write_bytes(b"<br>tail")

        assert main(["-c", str(config_path), "format", "-i", str(path)]) == 1

        assert path.read_bytes() == b"<br>tail"
        assert "Cannot format" in capsys.readouterr().err

    def test_strict_text_failure_to_stdout(self, tmp_path, list_file, capsys):
        """Test that other files are still written when one fails to render."""
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps({"formatter": {"strict_text": True}}), encoding="utf-8"
        )
        path = tmp_path / "loose.html"
        path.write_bytes(b"<br>tail")

        assert main(["-c", str(config_path), "format", str(path), str(list_file)]) == 1

        captured = capsys.readouterr()
        assert captured.out == "<ul>\n\t<li>A</li>\n\t<li>B</li>\n</ul>\n"
        assert f"Cannot format {path}" in captured.err


class TestCheckCommand:
    """Test the check command."""

    def test_text_output(self, list_file, text_file, capsys):
        """Test the human-readable report."""
        assert main(["check", str(list_file), str(text_file)]) == 1
        out = capsys.readouterr().out
        assert "Checked 2 files, 1 parsed" in out
        assert f"✓ {list_file}" in out
        assert "Encoding: utf-8, Elements: 3" in out
        assert f"✗ {text_file}" in out
        assert "Error:" in out

    def test_warnings_listed(self, tmp_path, capsys):
        """Test that parse warnings are shown."""
        path = tmp_path / "odd.html"
        path.write_text("<div></span></div>", encoding="utf-8")
        assert main(["check", str(path)]) == 0
        assert "Warning:" in capsys.readouterr().out

    def test_json_output(self, list_file, capsys):
        """Test the JSON report."""
        assert main(["check", "-f", "json", str(list_file)]) == 0
        results = json.loads(capsys.readouterr().out)
        assert len(results) == 1
        assert results[0]["success"] is True
        assert results[0]["element_count"] == 3
        assert results[0]["max_depth"] == 2

    def test_format_empty_results(self):
        """Test formatting an empty result list."""
        assert format_check_results([], "text") == "No results to display."
        assert format_check_results([], "json") == "[]"

    def test_warning_overflow(self):
        """Test that only the first three warnings are listed."""
        results = [{
            "file": "a.html",
            "success": True,
            "encoding": "utf-8",
            "element_count": 1,
            "node_count": 1,
            "max_depth": 1,
            "diagnostics": [
                {"severity": "WARNING", "message": f"w{i}"} for i in range(5)
            ],
        }]
        text = format_check_results(results, "text")
        assert text.count("Warning:") == 3
        assert "... and 2 more warnings" in text


class TestTreeCommand:
    """Test the tree command."""

    def test_outline(self):
        """Test the outline of a parsed document."""
        document = parse('<ul><li class="a">A</li><!-- c --></ul>')
        assert outline(document) == [
            "<ul>",
            '  <li class="a">',
            '    "A"',
            "  // c",
        ]

    def test_long_text_truncated(self):
        """Test that long text is shortened."""
        document = parse("<p>" + "word " * 20 + "</p>")
        assert outline(document)[1] == '  "' + "word " * 8 + '..."'

    def test_tree_command(self, list_file, capsys):
        """Test printing a file's node tree."""
        assert main(["tree", str(list_file)]) == 0
        assert capsys.readouterr().out.splitlines()[:2] == ["<ul>", "  <li>"]

    def test_tree_non_markup(self, text_file, capsys):
        """Test that a non-markup file reports an error."""
        assert main(["tree", str(text_file)]) == 1
        assert "Cannot parse" in capsys.readouterr().err
