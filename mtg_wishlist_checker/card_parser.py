"""
Card list parser module for handling wishlist and collection text.

This module turns free-form card lines such as "1 Aether Channeler (DMU) 42 *F*"
into CardRecord objects. The line grammar is ambiguous (quantity, set and
collector number are all optional), so each line is tried against an ordered
table of alternatives, most specific first, and the first one that matches and
passes its validator wins.
"""

import re
import logging
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional
from .models import CardRecord, ParseError, ParseResult


class CardListError(Exception):
    """Raised when a card list file cannot be read."""
    pass


SIDEBOARD_MARKER = 'SIDEBOARD'
INVALID_LINE_MESSAGE = 'Invalid card format'

FOIL_MARKER = '*F*'
ETCHED_MARKER = '*E*'

# Collector numbers: capitals, digits, dashes and the star used for
# promo/showcase variants, optionally followed by a lowercase suffix ("123a")
_NUMBER_TOKEN = r'[A-Z0-9\-★]+[a-z]*'
_FINISH_TOKEN = r'(?P<finish>\*[A-Z]\*)?'
_COLLECTOR_NUMBER_RE = re.compile(r'^[A-Z0-9\-★]+$')
_DIGIT_RE = re.compile(r'\d')


def _is_collector_number(number: str) -> bool:
    """Check that a trailing token really is a collector number and not a word."""
    return bool(_COLLECTOR_NUMBER_RE.match(number))


def _looks_like_card_name(name: str) -> bool:
    """
    Check that a bare name does not belong to one of the more specific formats.

    Names containing parentheses, asterisks or digits would have been matched
    by an earlier alternative if they were well formed, so they are rejected
    here instead of being swallowed as part of a card name.
    """
    if '*' in name or '(' in name or ')' in name:
        return False
    if _DIGIT_RE.search(name):
        return False
    return not _COLLECTOR_NUMBER_RE.match(name)


class GrammarAlternative(NamedTuple):
    """One row of the ordered card line grammar."""
    description: str
    pattern: re.Pattern
    validator: Optional[Callable[[re.Match], bool]] = None


GRAMMAR_ALTERNATIVES: List[GrammarAlternative] = [
    GrammarAlternative(
        'quantity, name, set, number',
        re.compile(r'^(?P<quantity>\d+)\s+(?P<name>[^(]+?)\s*\((?P<set>[^)]+)\)\s*'
                   rf'(?P<number>{_NUMBER_TOKEN})\s*{_FINISH_TOKEN}$'),
    ),
    GrammarAlternative(
        'name, set, number',
        re.compile(r'^(?P<name>[^(]+?)\s*\((?P<set>[^)]+)\)\s*'
                   rf'(?P<number>{_NUMBER_TOKEN})\s*{_FINISH_TOKEN}$'),
    ),
    GrammarAlternative(
        'quantity, name, number',
        re.compile(rf'^(?P<quantity>\d+)\s+(?P<name>[^(]+?)\s+(?P<number>{_NUMBER_TOKEN})\s*{_FINISH_TOKEN}$'),
        lambda match: _is_collector_number(match.group('number')),
    ),
    GrammarAlternative(
        'name, number',
        re.compile(rf'^(?P<name>[^(]+?)\s+(?P<number>{_NUMBER_TOKEN})\s*{_FINISH_TOKEN}$'),
        lambda match: _is_collector_number(match.group('number')),
    ),
    GrammarAlternative(
        'quantity, name, set',
        re.compile(rf'^(?P<quantity>\d+)\s+(?P<name>[^(]+?)\s*\((?P<set>[^)]+)\)\s*{_FINISH_TOKEN}$'),
    ),
    GrammarAlternative(
        'name, set',
        re.compile(rf'^(?P<name>[^(]+?)\s*\((?P<set>[^)]+)\)\s*{_FINISH_TOKEN}$'),
    ),
    GrammarAlternative(
        'quantity, name',
        re.compile(r'^(?P<quantity>\d+)\s+(?P<name>.+)$'),
        lambda match: _looks_like_card_name(match.group('name').strip()),
    ),
    GrammarAlternative(
        'name',
        re.compile(r'^(?P<name>.+)$'),
        lambda match: _looks_like_card_name(match.group('name').strip()),
    ),
]


def _build_card(match: re.Match) -> CardRecord:
    """Build a CardRecord from the named groups of a grammar match."""
    groups = match.groupdict()
    finish = groups.get('finish')

    return CardRecord(
        quantity=int(groups['quantity']) if groups.get('quantity') else 1,
        name=groups['name'].strip(),
        set_code=(groups.get('set') or '').strip(),
        number=groups.get('number') or '',
        foil=finish == FOIL_MARKER,
        etched=finish == ETCHED_MARKER,
    )


class CardParser:
    """Handles parsing of card lines and card lists."""

    def __init__(self, alternatives: Optional[List[GrammarAlternative]] = None):
        """Initialize the card parser."""
        self.logger = logging.getLogger(__name__)
        self.alternatives = alternatives if alternatives is not None else GRAMMAR_ALTERNATIVES

    def parse_card_line(self, line: str) -> Optional[CardRecord]:
        """
        Parse a single card line into a CardRecord.

        Args:
            line: The card line to parse

        Returns:
            CardRecord, or None if the line is blank or matches no format

        Raises:
            TypeError: If line is not a string
        """
        if not isinstance(line, str):
            raise TypeError(f"Card line must be a string, got {type(line).__name__}")

        line = line.strip()
        if not line:
            return None

        for alternative in self.alternatives:
            match = alternative.pattern.match(line)
            if not match:
                continue
            if alternative.validator is not None and not alternative.validator(match):
                continue
            return _build_card(match)

        return None

    def is_sideboard_marker(self, line: str) -> bool:
        """Check whether a trimmed line starts the sideboard section."""
        return SIDEBOARD_MARKER in line.upper()

    def parse_card_list(self, text: str, ignore_sideboard: bool = False) -> ParseResult:
        """
        Parse a multi-line card list.

        Args:
            text: The card list, one card per line
            ignore_sideboard: Skip every line after the sideboard header

        Returns:
            ParseResult with cards and errors in input line order

        Raises:
            TypeError: If text is not a string
        """
        if not isinstance(text, str):
            raise TypeError(f"Card list must be a string, got {type(text).__name__}")

        result = ParseResult()
        in_sideboard = False

        for line_number, raw_line in enumerate(text.split('\n'), start=1):
            line = raw_line.strip()
            if not line:
                continue

            if self.is_sideboard_marker(line):
                in_sideboard = True
                continue

            if in_sideboard and ignore_sideboard:
                continue

            card = self.parse_card_line(line)
            if card:
                result.cards.append(card)
            else:
                self.logger.debug(f"Could not parse line {line_number}: {line!r}")
                result.errors.append(ParseError(
                    line=line_number,
                    content=line,
                    message=INVALID_LINE_MESSAGE
                ))

        if result.errors:
            self.logger.info(f"Parsed {len(result.cards)} cards with {len(result.errors)} invalid lines")
        else:
            self.logger.debug(f"Parsed {len(result.cards)} cards")

        return result

    def load_card_list(self, path: str, ignore_sideboard: bool = False,
                       encoding: str = 'utf-8') -> ParseResult:
        """
        Load and parse a text file containing a card list.

        Args:
            path: Path to the card list file
            ignore_sideboard: Skip every line after the sideboard header
            encoding: Text encoding of the file

        Returns:
            ParseResult for the file contents

        Raises:
            FileNotFoundError: If the file doesn't exist
            CardListError: If the path is not a file or cannot be decoded
        """
        list_file = Path(path)

        if not list_file.exists():
            raise FileNotFoundError(f"Card list file not found: {path}")

        if not list_file.is_file():
            raise CardListError(f"Path is not a file: {path}")

        try:
            text = list_file.read_text(encoding=encoding)
        except UnicodeDecodeError as e:
            raise CardListError(f"File encoding error: {str(e)}")

        return self.parse_card_list(text, ignore_sideboard)
