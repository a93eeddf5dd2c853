"""
Tests for report formatting and file output.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path

from mtg_wishlist_checker.card_key import create_card_key
from mtg_wishlist_checker.cli import compare_text
from mtg_wishlist_checker.models import PriceDecision
from mtg_wishlist_checker.output_manager import OutputManager


class TestOutputManager(unittest.TestCase):
    """Test cases for OutputManager."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.output_manager = OutputManager(self.temp_dir)
        self.report = compare_text(
            "2 Lightning Bolt (M10) 133\n1 Sol Ring (C21) 263\nnot (valid",
            "3 Lightning Bolt (M10) 133\n1 Sol Ring (CMR) 472 *E*"
        )

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def test_creates_output_directory(self):
        nested = Path(self.temp_dir) / "reports" / "today"

        OutputManager(str(nested))

        self.assertTrue(nested.is_dir())

    def test_generate_filename(self):
        self.assertEqual(self.output_manager.generate_filename(), "wishlist_report.txt")
        self.assertEqual(self.output_manager.generate_filename("My Trade List!"), "my_trade_list.txt")

    def test_generate_filename_avoids_overwrite(self):
        Path(self.temp_dir, "wishlist_report.txt").write_text("old report")

        filename = self.output_manager.generate_filename()

        self.assertNotEqual(filename, "wishlist_report.txt")
        self.assertTrue(filename.startswith("wishlist_report_"))

    def test_sanitize_filename_empty(self):
        self.assertEqual(self.output_manager._sanitize_filename("!!!"), "wishlist_report")

    def test_format_price(self):
        self.assertEqual(self.output_manager.format_price(None), "")
        self.assertEqual(
            self.output_manager.format_price(PriceDecision(None, "TCGPlayer", "USD")),
            "Price not available"
        )
        self.assertEqual(
            self.output_manager.format_price(PriceDecision("1.50", "TCGPlayer", "USD")),
            "1.50 USD (TCGPlayer)"
        )
        self.assertEqual(
            self.output_manager.format_price(PriceDecision("0.80", "Cardmarket", "EUR", is_fallback=True)),
            "0.80 EUR (Cardmarket) [fallback]"
        )

    def test_format_report_sections(self):
        text = self.output_manager.format_report(self.report)

        self.assertIn("MTG Wishlist Check", text)
        self.assertIn("IN COLLECTION (1 entries, 2 cards):", text)
        self.assertIn("2 Lightning Bolt (M10) 133 (have 3)", text)
        self.assertIn("MISSING (1 entries, 1 cards):", text)
        self.assertIn("1 Sol Ring (C21) 263", text)
        self.assertIn("~ 1 Sol Ring (CMR) 472 *E*: Same name, different set (CMR vs C21)", text)
        self.assertIn("WISHLIST ERRORS (1 invalid lines):", text)
        self.assertIn("Line 3: not (valid - Invalid card format", text)
        self.assertNotIn("COLLECTION ERRORS", text)
        self.assertIn("Edition matching: exact", text)

    def test_format_report_with_prices(self):
        missing_card = self.report.result.missing[0].card
        self.report.prices[create_card_key(missing_card)] = PriceDecision("2.00", "TCGPlayer", "USD")

        text = self.output_manager.format_report(self.report)

        self.assertIn("1 Sol Ring (C21) 263  -  2.00 USD (TCGPlayer)", text)

    def test_write_report_file(self):
        path = self.output_manager.write_report_file(self.report)

        self.assertTrue(os.path.exists(path))
        self.assertEqual(os.path.basename(path), "wishlist_report.txt")
        with open(path, 'r', encoding='utf-8') as f:
            self.assertIn("IN COLLECTION", f.read())

    def test_write_report_file_custom_name(self):
        path = self.output_manager.write_report_file(self.report, "trades.txt")

        self.assertEqual(Path(path).name, "trades.txt")


if __name__ == '__main__':
    unittest.main()
