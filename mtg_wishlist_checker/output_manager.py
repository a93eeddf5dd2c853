"""Output manager for formatting and writing comparison reports."""

import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from .card_key import create_card_key
from .card_normalizer import build_card_line
from .models import CardRecord, ComparisonReport, ParseError, PriceDecision


class OutputManager:
    """Handles report formatting and report file output."""

    def __init__(self, output_directory: str = "."):
        """
        Initialize output manager.

        Args:
            output_directory: Directory where report files will be written
        """
        self.output_directory = Path(output_directory)
        self.output_directory.mkdir(parents=True, exist_ok=True)

    def generate_filename(self, base_name: str = "wishlist_report") -> str:
        """
        Generate a filename for a report, adding a timestamp if it already exists.

        Args:
            base_name: Name of the report without extension

        Returns:
            Unique filename
        """
        safe_name = self._sanitize_filename(base_name)
        base_filename = f"{safe_name}.txt"

        if not (self.output_directory / base_filename).exists():
            return base_filename

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{safe_name}_{timestamp}.txt"

    def _sanitize_filename(self, name: str) -> str:
        """
        Sanitize a string to be safe for use as a filename.

        Args:
            name: Raw string to sanitize

        Returns:
            Sanitized filename-safe string
        """
        sanitized = name.lower().replace(" ", "_")
        sanitized = "".join(c for c in sanitized if c.isalnum() or c in "_-")

        if not sanitized:
            sanitized = "wishlist_report"

        # Limit length to avoid filesystem issues
        return sanitized[:50]

    def format_price(self, decision: Optional[PriceDecision]) -> str:
        """Format a price decision for display next to a card."""
        if decision is None:
            return ""
        if not decision.has_price:
            return "Price not available"

        text = f"{decision.price} {decision.currency} ({decision.provider_name})"
        if decision.is_fallback:
            text += " [fallback]"
        return text

    def _card_line(self, card: CardRecord, report: ComparisonReport) -> str:
        line = build_card_line(card)
        price = self.format_price(report.prices.get(create_card_key(card)))
        if price:
            line += f"  -  {price}"
        return line

    def format_parse_errors(self, title: str, errors: List[ParseError]) -> List[str]:
        """Format parse errors as report lines, keyed by line number."""
        if not errors:
            return []

        lines = [f"{title} ({len(errors)} invalid lines):"]
        for error in errors:
            lines.append(f"  Line {error.line}: {error.content} - {error.message}")
        lines.append("")
        return lines

    def format_report(self, report: ComparisonReport) -> str:
        """
        Format a comparison report in readable text format.

        Args:
            report: The comparison report

        Returns:
            Formatted report as string
        """
        result = report.result
        lines = []

        # Header
        lines.append("=" * 60)
        lines.append("MTG Wishlist Check")
        lines.append("=" * 60)
        lines.append(f"Wishlist cards: {report.wishlist.total_quantity} "
                     f"({len(report.wishlist.cards)} entries)")
        lines.append(f"Collection cards: {report.collection.total_quantity} "
                     f"({len(report.collection.cards)} entries)")
        lines.append(f"Edition matching: {'ignored' if report.ignore_edition else 'exact'}")
        lines.append("")

        # Matches
        lines.append(f"IN COLLECTION ({len(result.matches)} entries, {result.total_matched} cards):")
        for entry in result.matches:
            card = entry.collection_card.with_quantity(entry.matched_quantity)
            lines.append(f"  {self._card_line(card, report)} "
                         f"(have {entry.collection_quantity_available})")
        lines.append("")

        # Missing
        lines.append(f"MISSING ({len(result.missing)} entries, {result.total_missing} cards):")
        for entry in result.missing:
            lines.append(f"  {self._card_line(entry.card, report)}")
            for partial in entry.partial_matches:
                lines.append(f"      ~ {build_card_line(partial.collection_card)}: {partial.reason}")
        lines.append("")

        # Parse feedback
        lines.extend(self.format_parse_errors("WISHLIST ERRORS", report.wishlist.errors))
        lines.extend(self.format_parse_errors("COLLECTION ERRORS", report.collection.errors))

        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

        return "\n".join(lines) + "\n"

    def write_report_file(self, report: ComparisonReport, filename: str = None) -> str:
        """
        Write a comparison report to a text file.

        Args:
            report: The comparison report
            filename: Optional custom filename (will generate if not provided)

        Returns:
            Path to the written file

        Raises:
            OSError: If the file cannot be written
        """
        if filename is None:
            filename = self.generate_filename()

        file_path = self.output_directory / filename

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(self.format_report(report))

            # Set readable permissions (644)
            os.chmod(file_path, 0o644)

            return str(file_path)

        except OSError as e:
            raise OSError(f"Failed to write report file '{file_path}': {e}")
