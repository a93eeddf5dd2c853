"""
Tests for data models.
"""

import unittest
from dataclasses import FrozenInstanceError

from mtg_wishlist_checker.models import (
    CardRecord, ComparisonReport, MatchEntry, MatchResult, MissingEntry,
    ParseError, ParseResult, PartialMatch, PriceDecision
)


class TestCardRecord(unittest.TestCase):
    """Test cases for CardRecord class."""

    def test_card_record_defaults(self):
        card = CardRecord(quantity=2, name="Lightning Bolt")

        self.assertEqual(card.set_code, "")
        self.assertEqual(card.number, "")
        self.assertFalse(card.foil)
        self.assertFalse(card.etched)

    def test_card_record_is_immutable(self):
        card = CardRecord(quantity=1, name="Sol Ring")

        with self.assertRaises(FrozenInstanceError):
            card.quantity = 3

    def test_with_quantity(self):
        card = CardRecord(quantity=1, name="Sol Ring", set_code="C21", number="263", foil=True)
        copy = card.with_quantity(5)

        self.assertEqual(copy.quantity, 5)
        self.assertEqual(copy.set_code, "C21")
        self.assertTrue(copy.foil)
        self.assertEqual(card.quantity, 1)

    def test_finish(self):
        self.assertEqual(CardRecord(quantity=1, name="A").finish, "nonfoil")
        self.assertEqual(CardRecord(quantity=1, name="A", foil=True).finish, "foil")
        self.assertEqual(CardRecord(quantity=1, name="A", foil=True, etched=True).finish, "etched")


class TestResults(unittest.TestCase):
    """Test cases for parse and match result containers."""

    def test_parse_result_total_quantity(self):
        result = ParseResult(cards=[
            CardRecord(quantity=2, name="Island"),
            CardRecord(quantity=3, name="Forest"),
        ])

        self.assertEqual(result.total_quantity, 5)

    def test_match_result_totals(self):
        bolt = CardRecord(quantity=3, name="Lightning Bolt")
        result = MatchResult(
            matches=[MatchEntry(bolt, bolt.with_quantity(1), matched_quantity=1,
                                collection_quantity_available=1)],
            missing=[MissingEntry(bolt.with_quantity(2), needed_quantity=2)]
        )

        self.assertEqual(result.total_matched, 1)
        self.assertEqual(result.total_missing, 2)

    def test_missing_entry_partial_matches(self):
        card = CardRecord(quantity=1, name="Sol Ring", set_code="C21")
        other = CardRecord(quantity=1, name="Sol Ring", set_code="CMR")

        self.assertFalse(MissingEntry(card, 1).has_partial_matches)
        self.assertTrue(MissingEntry(card, 1, (PartialMatch(other, "different set"),)).has_partial_matches)

    def test_comparison_report_parse_errors(self):
        clean = ComparisonReport(ParseResult(), ParseResult(), MatchResult())
        broken = ComparisonReport(
            ParseResult(errors=[ParseError(line=1, content="***", message="Invalid card format")]),
            ParseResult(),
            MatchResult()
        )

        self.assertFalse(clean.has_parse_errors)
        self.assertTrue(broken.has_parse_errors)
        self.assertEqual(clean.prices, {})


class TestPriceDecision(unittest.TestCase):
    """Test cases for PriceDecision class."""

    def test_has_price(self):
        self.assertTrue(PriceDecision(price="1.50", provider_name="TCGPlayer", currency="USD").has_price)
        self.assertFalse(PriceDecision(price=None, provider_name="TCGPlayer", currency="USD").has_price)

    def test_defaults(self):
        decision = PriceDecision(price="0.25", provider_name="Cardmarket", currency="EUR")

        self.assertFalse(decision.is_fallback)
        self.assertEqual(decision.fallback_reason, "")
        self.assertIsNone(decision.error)


if __name__ == '__main__':
    unittest.main()
