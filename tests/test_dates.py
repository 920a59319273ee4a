import math
import unittest
from datetime import date, datetime

from attendance_sheet.cells import EMPTY, Numeric, Text, classify_cell
from attendance_sheet.dates import (
    date_to_serial,
    parse_dmy_dash,
    parse_serial,
    resolve_date_cell,
    serial_to_date,
)
from attendance_sheet.models import INVALID


class SerialDateTests(unittest.TestCase):
    def test_serial_45292_is_new_year_2024(self):
        self.assertEqual(resolve_date_cell(45292), date(2024, 1, 1))

    def test_serial_day_one_is_last_day_of_1899(self):
        self.assertEqual(serial_to_date(1), date(1899, 12, 31))

    def test_fractional_serial_keeps_the_day(self):
        self.assertEqual(resolve_date_cell(45292.75), date(2024, 1, 1))

    def test_zero_and_negative_serials_are_invalid(self):
        self.assertIs(resolve_date_cell(0), INVALID)
        self.assertIs(resolve_date_cell(-3), INVALID)

    def test_out_of_range_serial_is_invalid_without_raising(self):
        self.assertIs(resolve_date_cell(10 ** 9), INVALID)
        self.assertIs(resolve_date_cell(float("inf")), INVALID)

    def test_date_to_serial_round_trips(self):
        self.assertEqual(date_to_serial(date(2024, 1, 1)), 45292)
        self.assertEqual(date_to_serial(datetime(2024, 1, 5, 13, 30)), 45296)


class TextDateTests(unittest.TestCase):
    def test_template_format_is_day_first(self):
        self.assertEqual(resolve_date_cell("05-01-2024"), date(2024, 1, 5))

    def test_slash_format_is_day_first(self):
        self.assertEqual(resolve_date_cell("1/5/2024"), date(2024, 5, 1))

    def test_formats_for_the_same_day_agree(self):
        resolved = {
            resolve_date_cell("05-01-2024"),
            resolve_date_cell("5/1/2024"),
            resolve_date_cell(45296),
        }
        self.assertEqual(resolved, {date(2024, 1, 5)})

    def test_leading_apostrophe_and_whitespace_are_ignored(self):
        self.assertEqual(resolve_date_cell("'05-01-2024"), date(2024, 1, 5))
        self.assertEqual(resolve_date_cell("  05-01-2024  "), date(2024, 1, 5))

    def test_year_first_text_is_never_day_first(self):
        for value in ("2024-01-05", "2024/01/05", "2024.01.05", "2024-01-05T00:00:00", "2024-01-05 08:30"):
            with self.subTest(value=value):
                self.assertEqual(resolve_date_cell(value), date(2024, 1, 5))

    def test_named_month_text(self):
        for value in ("5 Jan 2024", "05-Jan-2024", "January 5, 2024", "Fri Jan 05 2024"):
            with self.subTest(value=value):
                self.assertEqual(resolve_date_cell(value), date(2024, 1, 5))

    def test_dotted_text_is_day_first(self):
        self.assertEqual(resolve_date_cell("5.1.2024"), date(2024, 1, 5))

    def test_partial_dates_are_invalid(self):
        for value in ("12:30", "1st", "May", "May 2024", "2024", "Mon", "15"):
            with self.subTest(value=value):
                self.assertIs(resolve_date_cell(value), INVALID)

    def test_impossible_calendar_day_is_invalid(self):
        self.assertIs(resolve_date_cell("31-02-2024"), INVALID)
        self.assertIs(resolve_date_cell("30/02/2024"), INVALID)

    def test_labels_and_blanks_are_invalid(self):
        for value in (None, "", "   ", float("nan"), "status", "no entry"):
            with self.subTest(value=value):
                self.assertIs(resolve_date_cell(value), INVALID)

    def test_invalid_marker_is_falsy(self):
        self.assertFalse(INVALID)
        self.assertEqual(repr(INVALID), "INVALID")


class ParserChainTests(unittest.TestCase):
    def test_parsers_only_accept_their_own_variant(self):
        self.assertIsNone(parse_serial(Text("45292")))
        self.assertIsNone(parse_dmy_dash(Numeric(45292)))
        self.assertIsNone(parse_serial(EMPTY))

    def test_classify_cell(self):
        self.assertEqual(classify_cell(3), Numeric(3))
        self.assertEqual(classify_cell(" x "), Text(" x "))
        self.assertIs(classify_cell(None), EMPTY)
        self.assertIs(classify_cell(math.nan), EMPTY)
        self.assertIsInstance(classify_cell(True), Text)


if __name__ == "__main__":
    unittest.main()
