"""
Matching engine for comparing a wishlist against a collection.

Collection cards are aggregated by canonical key so that several lines for the
same printing count as one stock item. Each wishlist card is then looked up by
its own key; cards without a key match are checked for same-name printings,
which are reported as partial matches with the reason they did not match.
"""

import logging
from typing import Dict, List
from .card_key import create_card_key
from .models import CardRecord, MatchEntry, MatchResult, MissingEntry, PartialMatch


class CardMatcher:
    """Reconciles wishlist cards against collection cards."""

    def __init__(self):
        """Initialize the matcher."""
        self.logger = logging.getLogger(__name__)

    def aggregate_collection(self, collection: List[CardRecord],
                             ignore_edition: bool = False) -> Dict[str, CardRecord]:
        """
        Fold collection cards into one record per canonical key.

        Args:
            collection: Collection cards in input order
            ignore_edition: Whether to key on card name only

        Returns:
            Dictionary mapping keys to records whose quantity is the sum of all
            collection records sharing that key
        """
        aggregated: Dict[str, CardRecord] = {}

        for card in collection:
            key = create_card_key(card, ignore_edition)
            existing = aggregated.get(key)
            if existing:
                aggregated[key] = existing.with_quantity(existing.quantity + card.quantity)
            else:
                aggregated[key] = card

        return aggregated

    def find_matches(self, wishlist: List[CardRecord], collection: List[CardRecord],
                     ignore_edition: bool = False) -> MatchResult:
        """
        Find which wishlist cards the collection can cover.

        Args:
            wishlist: Wishlist cards
            collection: Collection cards
            ignore_edition: Whether to ignore set, number and finish differences

        Returns:
            MatchResult with matches and missing entries in wishlist order
        """
        result = MatchResult()
        collection_map = self.aggregate_collection(collection, ignore_edition)

        for wishlist_card in wishlist:
            key = create_card_key(wishlist_card, ignore_edition)
            collection_card = collection_map.get(key)

            if collection_card is not None:
                available = collection_card.quantity
                result.matches.append(MatchEntry(
                    wishlist_card=wishlist_card,
                    collection_card=collection_card,
                    matched_quantity=min(wishlist_card.quantity, available),
                    collection_quantity_available=available
                ))

                shortfall = wishlist_card.quantity - available
                if shortfall > 0:
                    result.missing.append(MissingEntry(
                        card=wishlist_card.with_quantity(shortfall),
                        needed_quantity=shortfall
                    ))
                continue

            partial_matches = self.find_partial_matches(wishlist_card, collection)
            if partial_matches:
                self.logger.debug(
                    f"'{wishlist_card.name}' has {len(partial_matches)} partial matches"
                )
            result.missing.append(MissingEntry(
                card=wishlist_card,
                needed_quantity=wishlist_card.quantity,
                partial_matches=tuple(partial_matches)
            ))

        self.logger.info(
            f"Compared {len(wishlist)} wishlist entries against {len(collection)} collection entries: "
            f"{len(result.matches)} matched, {len(result.missing)} missing"
        )

        return result

    def find_partial_matches(self, wishlist_card: CardRecord,
                             collection: List[CardRecord]) -> List[PartialMatch]:
        """
        Find collection cards with the same name but a different printing.

        Args:
            wishlist_card: The unmatched wishlist card
            collection: Collection cards, not aggregated

        Returns:
            Partial matches in collection order
        """
        name = wishlist_card.name.lower()

        return [
            PartialMatch(
                collection_card=collection_card,
                reason=self.classify_difference(wishlist_card, collection_card)
            )
            for collection_card in collection
            if collection_card.name.lower() == name
        ]

    def classify_difference(self, wishlist_card: CardRecord, collection_card: CardRecord) -> str:
        """
        Describe the first identity field in which two same-name cards differ.

        Fields are checked in the order set, number, foil, etched.
        """
        if collection_card.set_code != wishlist_card.set_code:
            return (f"Same name, different set "
                    f"({collection_card.set_code} vs {wishlist_card.set_code})")

        if collection_card.number != wishlist_card.number:
            return (f"Same name, different number "
                    f"({collection_card.number} vs {wishlist_card.number})")

        if collection_card.foil != wishlist_card.foil:
            return (f"Same name, different foil status "
                    f"({_foil_label(collection_card.foil)} vs {_foil_label(wishlist_card.foil)})")

        if collection_card.etched != wishlist_card.etched:
            return (f"Same name, different etched status "
                    f"({_etched_label(collection_card.etched)} vs {_etched_label(wishlist_card.etched)})")

        return "Same name, different edition"


def _foil_label(foil: bool) -> str:
    return 'foil' if foil else 'non-foil'


def _etched_label(etched: bool) -> str:
    return 'etched' if etched else 'non-etched'
