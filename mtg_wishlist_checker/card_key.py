"""Canonical keys used to decide whether two card records are the same item."""

from .models import CardRecord

# ASCII unit separator, never present in card list text
KEY_SEPARATOR = "\x1f"
UNKNOWN_FIELD = "unknown"


def create_card_key(card: CardRecord, ignore_edition: bool = False) -> str:
    """
    Create a deterministic key for a card.

    Args:
        card: The card record
        ignore_edition: If True, only the card name is significant

    Returns:
        The lower-cased name alone, or name, set, number, foil and etched
        state joined by KEY_SEPARATOR
    """
    name = card.name.lower()

    if ignore_edition:
        return name

    set_code = card.set_code.lower() or UNKNOWN_FIELD
    number = card.number.lower() or UNKNOWN_FIELD
    foil = "foil" if card.foil else "nonfoil"
    etched = "etched" if card.etched else "nonetched"

    return KEY_SEPARATOR.join([name, set_code, number, foil, etched])
