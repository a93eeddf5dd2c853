"""
Data models for MTG Wishlist Checker.

This module contains the core data structures used throughout the application,
including CardRecord, the match/missing classification records and the
PriceDecision returned by price lookups.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CardRecord:
    """Represents a single card line from a wishlist or collection."""
    quantity: int
    name: str
    set_code: str = ""
    number: str = ""
    foil: bool = False
    etched: bool = False

    def with_quantity(self, quantity: int) -> 'CardRecord':
        """Return a copy of this card with a different quantity."""
        return replace(self, quantity=quantity)

    @property
    def finish(self) -> str:
        """Human readable finish, etched taking precedence over foil."""
        if self.etched:
            return "etched"
        if self.foil:
            return "foil"
        return "nonfoil"


@dataclass(frozen=True)
class ParseError:
    """A line that matched none of the card line formats."""
    line: int
    content: str
    message: str


@dataclass
class ParseResult:
    """Cards and errors produced by parsing one card list."""
    cards: List[CardRecord] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        """Sum of the quantities of all parsed cards."""
        return sum(card.quantity for card in self.cards)


@dataclass(frozen=True)
class MatchEntry:
    """A wishlist card found in the collection."""
    wishlist_card: CardRecord
    collection_card: CardRecord
    matched_quantity: int
    collection_quantity_available: int


@dataclass(frozen=True)
class PartialMatch:
    """A collection card sharing a name with a wishlist card."""
    collection_card: CardRecord
    reason: str


@dataclass(frozen=True)
class MissingEntry:
    """A wishlist card (or part of its quantity) the collection cannot cover."""
    card: CardRecord
    needed_quantity: int
    partial_matches: Tuple[PartialMatch, ...] = ()

    @property
    def has_partial_matches(self) -> bool:
        """True if same-name cards were found in the collection."""
        return len(self.partial_matches) > 0


@dataclass
class MatchResult:
    """Outcome of comparing a wishlist against a collection."""
    matches: List[MatchEntry] = field(default_factory=list)
    missing: List[MissingEntry] = field(default_factory=list)

    @property
    def total_matched(self) -> int:
        """Number of wishlist copies covered by the collection."""
        return sum(entry.matched_quantity for entry in self.matches)

    @property
    def total_missing(self) -> int:
        """Number of wishlist copies the collection cannot cover."""
        return sum(entry.needed_quantity for entry in self.missing)


@dataclass(frozen=True)
class PriceDecision:
    """Result of a price lookup for one card."""
    price: Optional[str]
    provider_name: str
    currency: str
    is_fallback: bool = False
    fallback_reason: str = ""
    card_name: str = ""
    set_code: str = ""
    error: Optional[str] = None

    @property
    def has_price(self) -> bool:
        """True if a price value was found."""
        return self.price is not None


@dataclass
class ComparisonReport:
    """Everything produced by one wishlist/collection comparison."""
    wishlist: ParseResult
    collection: ParseResult
    result: MatchResult
    ignore_edition: bool = False
    prices: Dict[str, PriceDecision] = field(default_factory=dict)

    @property
    def has_parse_errors(self) -> bool:
        """True if either list had lines that could not be parsed."""
        return bool(self.wishlist.errors or self.collection.errors)
