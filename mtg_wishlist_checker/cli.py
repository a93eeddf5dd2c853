"""Command-line interface for MTG Wishlist Checker."""

import argparse
import sys
import logging
import time
from pathlib import Path
from typing import List, Optional

from . import __version__
from .card_key import create_card_key
from .card_normalizer import load_api_export
from .card_parser import CardListError, CardParser
from .config import ComparisonConfig, ConfigManager, apply_env_overrides
from .matcher import CardMatcher
from .models import ComparisonReport, ParseResult
from .output_manager import OutputManager
from .price_providers import DEFAULT_PROVIDERS
from .price_service import PriceService


logger = logging.getLogger(__name__)

LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
BRIEF_LOG_FORMAT = '%(levelname)s: %(message)s'
DETAILED_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments for the wishlist and collection paths.

    Args:
        argv: Argument list (defaults to sys.argv)

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='mtg-wishlist-checker',
        description='Check which cards of an MTG wishlist are already in your collection',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Card lists hold one card per line, e.g. "1 Aether Channeler (DMU) 42 *F*".
JSON exports with a mainboard, cards or data section are accepted too.

Examples:
  %(prog)s wishlist.txt collection.txt
  %(prog)s --ignore-edition wishlist.txt collection.txt
  %(prog)s --prices --provider cardmarket --fallback wishlist.txt binder.json
        """
    )

    parser.add_argument(
        'wishlist',
        type=str,
        help='Path to the wishlist card list'
    )

    parser.add_argument(
        'collection',
        type=str,
        help='Path to the collection card list'
    )

    parser.add_argument(
        '--ignore-edition',
        action='store_true',
        help='Match cards by name only, ignoring set, number and finish'
    )

    parser.add_argument(
        '--ignore-wishlist-sideboard',
        action='store_true',
        help='Skip wishlist lines after the sideboard header'
    )

    parser.add_argument(
        '--ignore-collection-sideboard',
        action='store_true',
        help='Skip collection lines after the sideboard header'
    )

    parser.add_argument(
        '--prices',
        action='store_true',
        help='Look up Scryfall prices for matched and missing cards'
    )

    parser.add_argument(
        '--provider',
        choices=[provider.key for provider in DEFAULT_PROVIDERS],
        default=None,
        help='Price provider (default: tcgplayer)'
    )

    parser.add_argument(
        '--fallback',
        action='store_true',
        help='Use another provider when the selected one has no price'
    )

    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        default=None,
        help='Also write the report to a file in this directory'
    )

    parser.add_argument(
        '--config-dir',
        type=str,
        default=None,
        help='Configuration directory (default: ~/.mtg_wishlist_checker)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output with detailed progress information'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress all output except errors'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    args = parser.parse_args(argv)

    if args.verbose and args.quiet:
        parser.error("--verbose and --quiet cannot be used together")

    return args


def validate_inputs(*paths: str) -> None:
    """
    Check that every card list path points to a readable file.

    Raises:
        FileNotFoundError: If a file doesn't exist
        ValueError: If a path is not a file
    """
    for path in paths:
        list_path = Path(path)

        if not list_path.exists():
            raise FileNotFoundError(f"Card list file not found: {path}")

        if not list_path.is_file():
            raise ValueError(f"Path is not a file: {path}")

        if list_path.suffix.lower() not in ('.txt', '.json', '.dec', ''):
            logger.warning(f"Unexpected extension '{list_path.suffix}' for {path}, reading it as a card list")


class MultilineFormatter(logging.Formatter):
    """Indents continuation lines so multiline messages stay grouped."""

    def format(self, record):
        first, *rest = super().format(record).split('\n')
        return '\n'.join([first] + ['  ' + line for line in rest])


def _log_level(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.INFO


def setup_logging(verbose: bool = False, quiet: bool = False,
                  log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Configure the package logger.

    Messages go to stderr, errors only in quiet mode and with timestamps and
    logger names in verbose mode. Verbose runs also write a log file.

    Args:
        verbose: Log debug messages
        quiet: Log errors only
        log_dir: Directory for the verbose-mode log file

    Returns:
        Path of the log file, if one was created
    """
    level = _log_level(verbose, quiet)

    app_logger = logging.getLogger('mtg_wishlist_checker')
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    app_logger.setLevel(level)
    app_logger.propagate = False

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(MultilineFormatter(
        DETAILED_LOG_FORMAT if verbose else BRIEF_LOG_FORMAT, datefmt=LOG_DATE_FORMAT
    ))
    app_logger.addHandler(console)

    # HTTP client chatter only in verbose mode
    for library in ('urllib3', 'requests'):
        logging.getLogger(library).setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not (verbose and log_dir is not None):
        return None

    log_file = Path(log_dir) / f"mtg_wishlist_checker_{time.strftime('%Y%m%d_%H%M%S')}.log"
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
    except OSError as e:
        logger.warning(f"File logging disabled, cannot open {log_file}: {e}")
        return None

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(MultilineFormatter(DETAILED_LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    app_logger.addHandler(file_handler)
    logger.info(f"Writing detailed log to {log_file}")
    return log_file


class ProgressIndicator:
    """Context manager reporting the start and duration of a step on stderr."""

    def __init__(self, message: str, verbose: bool = False, quiet: bool = False):
        self.message = message
        self.verbose = verbose
        self.quiet = quiet
        self._started = 0.0

    def _emit(self, text: str, end: str = '\n') -> None:
        if not self.quiet:
            print(text, end=end, flush=True, file=sys.stderr)

    def __enter__(self):
        if self.verbose:
            self._emit(f"[{time.strftime('%H:%M:%S')}] {self.message}...")
        else:
            self._emit(f"{self.message}...", end='')
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.perf_counter() - self._started
        outcome = "done" if exc_type is None else "failed"

        if self.verbose:
            self._emit(f"[{time.strftime('%H:%M:%S')}] {self.message}: {outcome} in {elapsed:.1f}s")
        else:
            self._emit(f" {outcome} ({elapsed:.1f}s)")
        return False


def load_card_file(path: str, parser: CardParser, ignore_sideboard: bool = False,
                   encoding: str = 'utf-8') -> ParseResult:
    """
    Load a card list from a text file or a JSON export.

    Args:
        path: Path to the card list
        parser: Card parser for text lists
        ignore_sideboard: Skip text lines after the sideboard header
        encoding: Text encoding of the file

    Returns:
        ParseResult for the file
    """
    if Path(path).suffix.lower() == '.json':
        return ParseResult(cards=load_api_export(path, encoding=encoding))

    return parser.load_card_list(path, ignore_sideboard, encoding=encoding)


def compare_lists(wishlist: ParseResult, collection: ParseResult,
                  ignore_edition: bool = False) -> ComparisonReport:
    """
    Compare parsed wishlist and collection cards.

    Args:
        wishlist: Parsed wishlist
        collection: Parsed collection
        ignore_edition: Whether to match on card name only

    Returns:
        ComparisonReport without prices
    """
    result = CardMatcher().find_matches(wishlist.cards, collection.cards, ignore_edition)
    return ComparisonReport(
        wishlist=wishlist,
        collection=collection,
        result=result,
        ignore_edition=ignore_edition
    )


def compare_text(wishlist_text: str, collection_text: str, ignore_edition: bool = False,
                 ignore_wishlist_sideboard: bool = False,
                 ignore_collection_sideboard: bool = False) -> ComparisonReport:
    """Parse two card lists given as text and compare them."""
    parser = CardParser()
    return compare_lists(
        parser.parse_card_list(wishlist_text, ignore_wishlist_sideboard),
        parser.parse_card_list(collection_text, ignore_collection_sideboard),
        ignore_edition
    )


def attach_prices(report: ComparisonReport, price_service: PriceService,
                  provider: str = 'tcgplayer', fallback: Optional[bool] = None) -> ComparisonReport:
    """
    Look up prices for the cards shown in a report.

    Matched cards are priced by their collection printing, missing cards by
    the wishlist printing.
    """
    cards = [entry.collection_card for entry in report.result.matches]
    cards.extend(entry.card for entry in report.result.missing)

    unique_cards = {}
    for card in cards:
        unique_cards.setdefault(create_card_key(card), card)

    decisions = price_service.resolve_many(list(unique_cards.values()), provider, fallback)
    report.prices.update(zip(unique_cards.keys(), decisions))

    return report


# Checked in order, so subclasses come before their bases
FRIENDLY_ERROR_PREFIXES = (
    (FileNotFoundError, "File not found"),
    (CardListError, "Could not read your card list"),
    (ValueError, "Invalid input"),
    (OSError, "File system error"),
)


def handle_user_friendly_errors(error: Exception, verbose: bool = False) -> str:
    """
    Turn an exception into a message for the command line.

    Args:
        error: The exception raised while running a comparison
        verbose: Include details of unexpected errors

    Returns:
        Message to print after "Error: "
    """
    for error_type, prefix in FRIENDLY_ERROR_PREFIXES:
        if isinstance(error, error_type):
            return f"{prefix}: {error}"

    if verbose:
        return f"Unexpected error: {error}"
    return "An unexpected error occurred. Use --verbose for more details."


def run_comparison(args: argparse.Namespace, config: ComparisonConfig) -> ComparisonReport:
    """Run the comparison described by parsed arguments and configuration."""
    verbose = args.verbose or config.verbose_output
    parser = CardParser()

    with ProgressIndicator("Loading card lists", verbose, args.quiet):
        wishlist = load_card_file(
            args.wishlist, parser,
            args.ignore_wishlist_sideboard or config.ignore_wishlist_sideboard,
            config.text_encoding
        )
        collection = load_card_file(
            args.collection, parser,
            args.ignore_collection_sideboard or config.ignore_collection_sideboard,
            config.text_encoding
        )

    report = compare_lists(wishlist, collection, args.ignore_edition or config.ignore_edition)

    if args.prices or config.fetch_prices:
        price_service = PriceService.from_config(config)
        provider = args.provider or config.price_provider
        with ProgressIndicator("Fetching prices", verbose, args.quiet):
            attach_prices(report, price_service, provider, args.fallback or config.price_fallback)

    return report


def main(argv: Optional[List[str]] = None):
    """Main entry point for the MTG Wishlist Checker CLI."""
    args = parse_arguments(argv)
    verbose = args.verbose

    try:
        config_manager = ConfigManager(Path(args.config_dir) if args.config_dir else None)
        config = apply_env_overrides(config_manager.get_config())
        verbose = verbose or config.verbose_output

        setup_logging(verbose, args.quiet, config_manager.get_logs_dir() if verbose else None)
        validate_inputs(args.wishlist, args.collection)

        report = run_comparison(args, config)

        output_manager = OutputManager(args.output_dir or config.default_output_dir)
        if not args.quiet:
            print(output_manager.format_report(report))

        if args.output_dir:
            output_path = output_manager.write_report_file(report)
            logger.info(f"Report saved to: {output_path}")

    except KeyboardInterrupt:
        if not args.quiet:
            print("\nOperation cancelled by user")
        sys.exit(1)

    except Exception as e:
        logger.debug("Comparison failed", exc_info=True)
        print(f"Error: {handle_user_friendly_errors(e, verbose)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
