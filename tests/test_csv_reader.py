"""Tests for the keyed CSV loader."""

import gc
import io
import logging

import pytest

from csvdiff import ConfigError, InputError, Options, ParseError, load
from csvdiff.csv_reader import make_key, read_rows

from conftest import default_options, stream


class TestLoad:
    """Tests for load()."""

    def test_simple_csv(self):
        """Test loading a simple CSV with a header."""
        opt = default_options("a")
        table = load(stream("a,b\n1,2"), opt)

        assert table.headers == ["a", "b"]
        assert table.header_index == {"a": 0, "b": 1}
        assert table.records == {"1": ["1", "2"]}
        assert table.options is opt

    def test_none_source_errors(self):
        """Test that a missing source raises InputError."""
        with pytest.raises(InputError):
            load(None, default_options())

    def test_none_options_errors(self):
        """Test that missing options raise InputError."""
        with pytest.raises(InputError):
            load(stream("hello world"), None)

    def test_plain_string_source_errors(self):
        """Test that raw text instead of a stream is rejected."""
        with pytest.raises(InputError) as exc_info:
            load("a,b\n1,2", default_options("a"))

        assert "str" in str(exc_info.value)

    def test_invalid_key_column_errors(self):
        """Test that an unknown key column raises ConfigError."""
        with pytest.raises(ConfigError) as exc_info:
            load(stream("a,b\n1,2"), default_options("c"))

        assert "c" in str(exc_info.value)
        assert "['a', 'b']" in str(exc_info.value)

    def test_invalid_key_column_header_only_errors(self):
        """Test that key columns are checked even when there are no records."""
        with pytest.raises(ConfigError):
            load(stream("a,b\n"), default_options("c"))

    def test_empty_csv_without_header(self):
        """Test that an empty source loads as an empty table."""
        table = load(stream(""), Options(has_header=False))

        assert table.headers == []
        assert table.header_index == {}
        assert table.records == {}

    def test_empty_csv_with_header(self):
        """Test that an empty source is valid when a header is expected."""
        table = load(stream(""), Options(has_header=True))

        assert table.headers == []
        assert table.records == {}

    def test_header_only_csv(self):
        """Test that a header with no rows is valid."""
        table = load(stream("a,b"), default_options("b"))

        assert table.headers == ["a", "b"]
        assert table.header_index == {"a": 0, "b": 1}
        assert table.records == {}

    def test_custom_separator(self):
        """Test a semicolon separator with a composite key."""
        opt = Options(key_columns=["b", "c"], separator=";")
        table = load(stream("a;b;c\n1;2;3\n"), opt)

        assert table.headers == ["a", "b", "c"]
        assert table.records == {"2,3": ["1", "2", "3"]}

    def test_tab_separator(self):
        """Test loading tab-separated text."""
        table = load(stream("id\tname\n1\tWidget\n"), Options(key_columns=["id"], separator="\t"))

        assert table.records == {"1": ["1", "Widget"]}

    def test_quoted_fields(self):
        """Test quoted fields with separators and newlines."""
        table = load(
            stream('id,description\n1,"Hello, World"\n2,"Line 1\nLine 2"\n'),
            default_options("id"),
        )

        assert table.value("1", "description") == "Hello, World"
        assert table.value("2", "description") == "Line 1\nLine 2"

    def test_blank_lines_skipped(self):
        """Test that blank lines produce no records."""
        table = load(stream("a,b\n\n1,2\n\n3,4\n"), default_options("a"))

        assert list(table.records) == ["1", "3"]

    def test_last_duplicate_key_wins(self, caplog):
        """Test that a repeated key keeps the last row."""
        with caplog.at_level(logging.WARNING):
            table = load(stream("a,b\n1,2\n1,3\n"), default_options("a"))

        assert table.records == {"1": ["1", "3"]}
        assert "duplicate key" in caplog.text

    def test_duplicate_header_last_wins(self, caplog):
        """Test that a repeated header name maps to its last column."""
        with caplog.at_level(logging.WARNING):
            table = load(stream("a,b,a\n1,2,3\n"), default_options("a"))

        assert table.headers == ["a", "b", "a"]
        assert table.header_index == {"a": 2, "b": 1}
        assert table.records == {"3": ["1", "2", "3"]}
        assert "Duplicate header" in caplog.text

    def test_ignore_case_lowercases_key(self):
        """Test that ignore_case folds the composite key."""
        table = load(stream("a,b\nHELLO,World\n"), default_options("a", ignore_case=True))

        assert table.records == {"hello": ["HELLO", "World"]}

    def test_composite_key_order(self):
        """Test that key values are joined in configured order."""
        table = load(stream("a,b,c\n1,2,3\n"), default_options("c", "a"))

        assert list(table.records) == ["3,1"]

    def test_no_header_with_key_columns_errors(self):
        """Test that key columns cannot resolve when there is no header."""
        with pytest.raises(ConfigError) as exc_info:
            load(stream("1,2\n3,4\n"), Options(key_columns=["a"], has_header=False))

        assert "Invalid column header: a" in str(exc_info.value)

    def test_no_header_empty_source_with_key_columns(self):
        """Test that an empty source loads even though no key column resolves."""
        table = load(stream(""), Options(key_columns=["a"], has_header=False))

        assert table.records == {}

    def test_no_key_columns_collapses_rows(self, caplog):
        """Test that without key columns every row shares the empty key."""
        with caplog.at_level(logging.WARNING):
            table = load(stream("1,2\n3,4\n"), Options(has_header=False))

        assert table.headers == []
        assert table.records == {"": ["3", "4"]}
        assert "collapse" in caplog.text

    def test_binary_stream_with_bom(self):
        """Test that a binary stream is decoded and its BOM stripped."""
        table = load(io.BytesIO(b'\xef\xbb\xbfid,name\n1,Test\n'), default_options("id"))

        assert table.headers == ["id", "name"]
        assert table.records == {"1": ["1", "Test"]}

    def test_binary_stream_left_open(self):
        """Test that loading does not close the caller's binary stream."""
        buf = io.BytesIO(b"a,b\n1,2\n")
        load(buf, default_options("a"))
        gc.collect()

        assert not buf.closed
        buf.seek(0)
        assert buf.read() == b"a,b\n1,2\n"

    def test_iterable_of_lines(self):
        """Test that a list of lines is accepted as a source."""
        table = load(["a,b\n", "1,2\n"], default_options("a"))

        assert table.records == {"1": ["1", "2"]}

    def test_load_file(self, basic_from_csv):
        """Test loading a fixture file."""
        with open(basic_from_csv, newline='') as f:
            table = load(f, default_options("id"))

        assert table.headers == ["id", "sku", "title", "price", "inventory"]
        assert len(table) == 5
        assert table.value("3", "price") == "4.50"


class TestParseErrors:
    """Tests for malformed input."""

    def test_text_after_closing_quote_errors(self):
        """Test that strict mode rejects text after a closing quote."""
        with pytest.raises(ParseError):
            load(stream('a,"b"c\n'), Options(lazy_quotes=False))

    def test_lazy_quotes_forgives(self):
        """Test that lazy mode accepts text after a closing quote."""
        table = load(stream('a,"b"c\n'), Options(lazy_quotes=True))

        assert table.headers == ["a", "bc"]

    def test_unterminated_quote_errors(self):
        """Test that strict mode rejects an unterminated quoted field."""
        with pytest.raises(ParseError):
            load(stream('a,b\n1,"2\n'), Options(key_columns=["a"]))

    def test_wrong_number_of_fields_errors(self):
        """Test that a ragged row is rejected."""
        with pytest.raises(ParseError) as exc_info:
            load(stream("a,b\n1,2\n3\n"), default_options("a"))

        assert "wrong number of fields" in str(exc_info.value)
        assert exc_info.value.line == 3

    def test_error_names_source(self):
        """Test that the parse error carries the source name."""
        with pytest.raises(ParseError) as exc_info:
            load(stream('a,"b"c\n'), Options(), name="from")

        assert exc_info.value.source == "from"
        assert str(exc_info.value).startswith("error parsing from csv")

    def test_invalid_utf8_errors(self):
        """Test that undecodable bytes in a binary stream are a parse error."""
        with pytest.raises(ParseError) as exc_info:
            load(io.BytesIO(b"a,b\n1,\xff\n"), Options(key_columns=["a"]), name="to")

        assert exc_info.value.source == "to"
        assert "UTF-8" in str(exc_info.value)


class TestTable:
    """Tests for Table lookups."""

    def test_value_unresolvable(self):
        """Test that unknown columns or keys resolve to None."""
        table = load(stream("a,b\n1,2\n"), default_options("a"))

        assert table.value("1", "b") == "2"
        assert table.value("1", "c") is None
        assert table.value("9", "b") is None

    def test_record_map(self):
        """Test the header -> value view of a record."""
        table = load(stream("a,b\n1,2\n"), default_options("a"))

        assert table.record_map("1") == {"a": "1", "b": "2"}


class TestHelpers:
    """Tests for tokenizing and key helpers."""

    def test_read_rows(self):
        """Test tokenizing into rows."""
        rows = read_rows(stream('x,"y, z"\n1,2\n'), Options())

        assert rows == [["x", "y, z"], ["1", "2"]]

    def test_make_key(self):
        """Test composite key construction without escaping."""
        assert make_key(["a,b", "c"], [0, 1]) == "a,b,c"
        assert make_key(["A", "B"], [1], ignore_case=True) == "b"
        assert make_key(["A"], []) == ""
