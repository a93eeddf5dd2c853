"""Tests for canonical card keys."""

import unittest

from mtg_wishlist_checker.card_key import create_card_key, KEY_SEPARATOR, UNKNOWN_FIELD
from mtg_wishlist_checker.models import CardRecord


class TestCreateCardKey(unittest.TestCase):
    """Test cases for create_card_key."""

    def test_full_key(self):
        card = CardRecord(quantity=1, name="Aether Channeler", set_code="DMU", number="42", foil=True)

        key = create_card_key(card)

        self.assertEqual(key.split(KEY_SEPARATOR),
                         ["aether channeler", "dmu", "42", "foil", "nonetched"])

    def test_missing_fields_use_placeholder(self):
        key = create_card_key(CardRecord(quantity=1, name="Sol Ring"))

        self.assertEqual(key.split(KEY_SEPARATOR),
                         ["sol ring", UNKNOWN_FIELD, UNKNOWN_FIELD, "nonfoil", "nonetched"])

    def test_key_is_case_insensitive(self):
        upper = CardRecord(quantity=1, name="LIGHTNING BOLT", set_code="M10", number="133")
        lower = CardRecord(quantity=3, name="lightning bolt", set_code="m10", number="133")

        self.assertEqual(create_card_key(upper), create_card_key(lower))

    def test_quantity_is_not_part_of_key(self):
        card = CardRecord(quantity=1, name="Sol Ring", set_code="C21")

        self.assertEqual(create_card_key(card), create_card_key(card.with_quantity(7)))

    def test_finish_distinguishes_keys(self):
        plain = CardRecord(quantity=1, name="Sol Ring", set_code="CMR", number="472")

        self.assertNotEqual(create_card_key(plain), create_card_key(
            CardRecord(quantity=1, name="Sol Ring", set_code="CMR", number="472", foil=True)))
        self.assertNotEqual(create_card_key(plain), create_card_key(
            CardRecord(quantity=1, name="Sol Ring", set_code="CMR", number="472", etched=True)))

    def test_ignore_edition_uses_name_only(self):
        card = CardRecord(quantity=1, name="Lightning Bolt", set_code="M10", number="133", foil=True)

        self.assertEqual(create_card_key(card, ignore_edition=True), "lightning bolt")

    def test_fields_cannot_run_together(self):
        """Test that different field splits never produce the same key."""
        first = CardRecord(quantity=1, name="Bolt", set_code="A", number="BC")
        second = CardRecord(quantity=1, name="Bolt", set_code="AB", number="C")

        self.assertNotEqual(create_card_key(first), create_card_key(second))


if __name__ == '__main__':
    unittest.main()
