"""MTG Wishlist Checker

A command-line tool that compares an MTG card wishlist against a card
collection and reports matched, partially matched and missing cards,
optionally with Scryfall price lookups.
"""

__version__ = "0.1.0"
__author__ = "MTG Wishlist Checker"
__description__ = "Compare a card wishlist against your collection"
