"""
Unit tests for shared/utils.py

Tests date parsing utilities and summary printing.
"""

import unittest
from unittest.mock import patch

from shared.utils import parse_date_string, print_summary


class TestParseDateString(unittest.TestCase):
    """Tests for parse_date_string() function."""

    def test_parse_plain_date(self):
        """Parse a date-only value (2026-03-06)."""
        result = parse_date_string("2026-03-06")

        self.assertIsNotNone(result)
        self.assertTrue(result.startswith("2026-03-06"))

    def test_parse_iso_timestamp(self):
        """Parse a UTC timestamp as stored by some date columns."""
        result = parse_date_string("2026-03-06T00:00:00.000Z")

        self.assertIsNotNone(result)
        self.assertTrue(result.startswith("2026-03-06"))

    def test_parse_verbose_format(self):
        """Parse verbose format (March 6, 2026)."""
        result = parse_date_string("March 6, 2026")

        self.assertIsNotNone(result)
        self.assertIn("2026-03-06", result)

    def test_invalid_date_returns_none(self):
        """Invalid date string returns None."""
        self.assertIsNone(parse_date_string("not a date at all"))

    def test_empty_string_returns_none(self):
        """Empty string returns None."""
        self.assertIsNone(parse_date_string(""))

    def test_none_returns_none(self):
        """None input returns None."""
        self.assertIsNone(parse_date_string(None))


class TestPrintSummary(unittest.TestCase):
    """Tests for print_summary() function."""

    @patch("builtins.print")
    def test_prints_counts(self, mock_print):
        """Output includes date, sent, skipped and failed counts."""
        print_summary("2026-03-06", sent=10, skipped=2, failed=1)

        printed_output = " ".join(str(call[0][0]) for call in mock_print.call_args_list)
        self.assertIn("2026-03-06", printed_output)
        self.assertIn("Sent: 10", printed_output)
        self.assertIn("(no recipient): 2", printed_output)
        self.assertIn("Failed: 1", printed_output)


if __name__ == "__main__":
    unittest.main()
