import csv
import io
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from awakenfetch.report.formatting import escape_csv_field, format_date, format_pnl, format_quantity, render_rows


class TestFormatDate:
    def test_utc(self):
        assert format_date(datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)) == "01/02/2024 03:04:05"

    def test_converts_offset_to_utc(self):
        tz = timezone(timedelta(hours=7))
        assert format_date(datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz)) == "01/01/2024 20:04:05"

    def test_naive_taken_as_utc(self):
        assert format_date(datetime(2024, 12, 31, 23, 59, 59)) == "12/31/2024 23:59:59"


class TestFormatQuantity:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Decimal("1.5"), "1.5"),
            (Decimal("1.50000000"), "1.5"),
            (Decimal("0.123456789"), "0.12345679"),
            (Decimal("0.000000005"), "0.00000001"),
            (Decimal("0.000000004"), "0"),
            (Decimal("1E-7"), "0.0000001"),
            (Decimal("12345678901234567890"), "12345678901234567890"),
            (Decimal(100), "100"),
            (0, "0"),
            (2.25, "2.25"),
        ],
    )
    def test_values(self, value, expected):
        assert format_quantity(value) == expected

    def test_sign_stripped(self):
        assert format_quantity(Decimal("-5.5")) == format_quantity(Decimal("5.5")) == "5.5"
        assert format_quantity(-5.5) == "5.5"

    def test_idempotent(self):
        for value in ("0.123456789", "1000.1", "-3", "0.00000001"):
            once = format_quantity(Decimal(value))
            assert format_quantity(Decimal(once)) == once

    def test_missing_and_non_finite_are_blank(self):
        assert format_quantity(None) == ""
        assert format_quantity(float("nan")) == ""
        assert format_quantity(Decimal("Infinity")) == ""


class TestFormatPnl:
    def test_keeps_sign(self):
        assert format_pnl(Decimal("-12.5")) == "-12.5"
        assert format_pnl(Decimal("7.25000")) == "7.25"

    def test_zero_and_non_finite(self):
        assert format_pnl(Decimal("0.000")) == "0"
        assert format_pnl(Decimal("-0")) == "0"
        assert format_pnl(float("inf")) == "0"


class TestEscapeCsvField:
    def test_plain_field_untouched(self):
        assert escape_csv_field("hello") == "hello"

    @pytest.mark.parametrize(
        "value",
        ['a,b', 'say "hi"', "line1\nline2", "cr\rfield", '",\n"'],
    )
    def test_round_trip_through_csv_reader(self, value):
        escaped = escape_csv_field(value)
        assert escaped.startswith('"') and escaped.endswith('"')
        assert next(csv.reader(io.StringIO(escaped, newline=""))) == [value]

    def test_empty_field_stays_empty(self):
        assert escape_csv_field("") == ""


class TestRenderRows:
    def test_rows_joined_by_newline_without_trailer(self):
        assert render_rows(["A", "B"], [["1", ""], ["", "2"]]) == "A,B\n1,\n,2"

    def test_embedded_line_breaks_stay_inside_quotes(self):
        rows = [["x", 'note, "quoted"'], ["y", "two\r\nlines"]]

        text = render_rows(["Key", "Notes"], rows)

        assert text.splitlines()[1] == 'x,"note, ""quoted"""'
        assert list(csv.reader(io.StringIO(text, newline=""))) == [["Key", "Notes"], *rows]

    def test_header_only(self):
        assert render_rows(["A", "B"], []) == "A,B"
