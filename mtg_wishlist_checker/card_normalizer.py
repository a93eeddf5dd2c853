"""
Normalization of card entries exported by deck and collection sites.

Deck, collection and binder exports come in a few JSON shapes (a `mainboard`
mapping, a `cards` list or mapping, a `data` list) and entries may nest the
printing under a `card` key. These helpers flatten them into CardRecord
objects and card list lines in the text format the parser reads.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List
from .card_key import create_card_key
from .card_parser import CardListError, CardParser
from .models import CardRecord

logger = logging.getLogger(__name__)


def _nested_card(entry: Dict[str, Any]) -> Dict[str, Any]:
    nested = entry.get('card')
    return nested if isinstance(nested, dict) else {}


def is_foil(entry: Dict[str, Any]) -> bool:
    """Check if an exported card entry is foil."""
    card = _nested_card(entry)
    return bool(
        card.get('isFoil')
        or card.get('finish') in ('foil', 'foil-etched')
        or entry.get('isFoil')
    )


def is_etched(entry: Dict[str, Any]) -> bool:
    """Check if an exported card entry is etched."""
    card = _nested_card(entry)
    return bool(
        card.get('finish') in ('etched', 'foil-etched')
        or card.get('etched') is True
        or entry.get('isEtched')
    )


def normalize_card(entry: Dict[str, Any]) -> CardRecord:
    """
    Normalize an exported card entry into a CardRecord.

    Args:
        entry: Raw card entry, possibly with the printing nested under `card`

    Returns:
        CardRecord with an upper-cased set code
    """
    base = _nested_card(entry) or entry
    number = base.get('cn') or base.get('number') or base.get('collector_number') or entry.get('number') or ''

    return CardRecord(
        quantity=int(entry.get('quantity') or 1),
        name=base.get('name') or entry.get('name') or '',
        set_code=str(base.get('set') or entry.get('set') or '').upper(),
        number=str(number),
        foil=is_foil(entry),
        etched=is_etched(entry),
    )


def build_card_line(card: CardRecord) -> str:
    """
    Build a card list line for a card record.

    Etched takes precedence over foil, since a line carries one finish marker.
    """
    line = f"{card.quantity} {card.name}"
    if card.set_code:
        line += f" ({card.set_code})"
    if card.number:
        line += f" {card.number}"
    if card.etched:
        line += ' *E*'
    elif card.foil:
        line += ' *F*'
    return line


def _entries(section: Any) -> List[Dict[str, Any]]:
    if isinstance(section, dict):
        return list(section.values())
    return list(section)


def parse_api_response(data: Any) -> List[CardRecord]:
    """
    Extract card records from an exported deck, collection or binder.

    Args:
        data: Decoded JSON export

    Returns:
        List of normalized card records

    Raises:
        CardListError: If the data has no recognizable card section
    """
    if not isinstance(data, dict):
        raise CardListError("Failed to parse deck data from API response")

    for section_name in ('mainboard', 'cards', 'data'):
        section = data.get(section_name)
        if isinstance(section, (list, dict)):
            entries = _entries(section)
            logger.debug(f"Found {len(entries)} entries in '{section_name}'")
            try:
                return [normalize_card(entry) for entry in entries if isinstance(entry, dict)]
            except (TypeError, ValueError) as e:
                raise CardListError(f"Invalid card quantity in '{section_name}': {e}")

    raise CardListError("Failed to parse deck data from API response")


def load_api_export(path: str, encoding: str = 'utf-8') -> List[CardRecord]:
    """
    Load card records from a saved JSON export.

    Raises:
        FileNotFoundError: If the file doesn't exist
        CardListError: If the file is not valid JSON or has no card section
    """
    export_file = Path(path)

    if not export_file.exists():
        raise FileNotFoundError(f"Export file not found: {path}")

    try:
        with open(export_file, 'r', encoding=encoding) as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CardListError(f"Invalid JSON data provided: {e}")

    return parse_api_response(data)


def cards_to_text(cards: Iterable[CardRecord]) -> str:
    """Render card records as a sorted card list."""
    return '\n'.join(sorted(build_card_line(card) for card in cards))


def deduplicate_card_lines(lines: Iterable[str], parser: CardParser = None) -> List[str]:
    """
    Combine card lines describing the same printing.

    Lines that cannot be parsed are dropped.

    Args:
        lines: Card list lines
        parser: Parser to use (a default CardParser if not given)

    Returns:
        Sorted card lines with quantities summed per printing
    """
    parser = parser or CardParser()
    combined: Dict[str, CardRecord] = {}

    for line in lines:
        card = parser.parse_card_line(line)
        if card is None:
            continue

        key = create_card_key(card, ignore_edition=False)
        existing = combined.get(key)
        if existing:
            combined[key] = existing.with_quantity(existing.quantity + card.quantity)
        else:
            combined[key] = card

    return sorted(build_card_line(card) for card in combined.values())
