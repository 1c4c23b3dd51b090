from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table

from .models import PROPERTY_REGISTRY, MediaType, ParsedRecord, ParseOutcome

# Color constants for status indicators
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"
DIM_COLOR = "dim"

# Symbol indicators for quick scanning
SUCCESS_SYMBOL = "✓"
WARNING_SYMBOL = "⚠"
ERROR_SYMBOL = "✗"

# Confidence thresholds for coloring
HIGH_CONFIDENCE = 0.8
LOW_CONFIDENCE = 0.5


def _format_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, MediaType):
        return value.value
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


def _episode_or_year(record: ParsedRecord) -> str:
    if record.season_episode:
        return record.season_episode
    if record.episode is not None:
        return f"E{record.episode:02d}"
    if record.season is not None:
        return f"S{record.season:02d}"
    if record.year is not None:
        return str(record.year)
    return ""


class ResultTableRenderer:
    """Renders parse outcomes as Rich Tables with color-coded confidence."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    @staticmethod
    def _get_confidence_color(confidence: float) -> str:
        if confidence >= HIGH_CONFIDENCE:
            return SUCCESS_COLOR
        if confidence >= LOW_CONFIDENCE:
            return WARNING_COLOR
        if confidence > 0:
            return ERROR_COLOR
        return DIM_COLOR

    @staticmethod
    def _colorize_confidence(confidence: float) -> str:
        color = ResultTableRenderer._get_confidence_color(confidence)
        return f"[{color}]{confidence:.2f}[/{color}]"

    @staticmethod
    def _get_status_symbol(outcome: ParseOutcome) -> str:
        """Colored status marker: error, low-confidence warning or success."""
        if not outcome.ok:
            return f"[{ERROR_COLOR}]{ERROR_SYMBOL}[/{ERROR_COLOR}]"
        if outcome.unwrap().confidence < HIGH_CONFIDENCE:
            return f"[{WARNING_COLOR}]{WARNING_SYMBOL}[/{WARNING_COLOR}]"
        return f"[{SUCCESS_COLOR}]{SUCCESS_SYMBOL}[/{SUCCESS_COLOR}]"

    def render_record_table(self, outcome: ParseOutcome) -> Table:
        """One row per populated property of a single parse.

        Args:
            outcome: Parse outcome to render

        Returns:
            Rich Table instance ready to print
        """
        table = Table(title=outcome.filename, show_header=True, header_style="bold")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value")

        if not outcome.ok:
            table.add_row("error", f"[{ERROR_COLOR}]{ERROR_SYMBOL} {outcome.error}[/{ERROR_COLOR}]")
            return table

        record = outcome.unwrap()
        for name in record.detected_properties():
            table.add_row(name, _format_value(PROPERTY_REGISTRY[name].get(record)))
        table.add_row("confidence", self._colorize_confidence(record.confidence))
        return table

    def render_batch_table(self, outcomes: Sequence[ParseOutcome]) -> Table:
        """One row per filename with the most useful properties.

        Args:
            outcomes: Parse outcomes in input order

        Returns:
            Rich Table instance ready to print
        """
        table = Table(title="Parse Results", show_header=True, header_style="bold")
        table.add_column("File", style="cyan")
        table.add_column("Title")
        table.add_column("Type", justify="center")
        table.add_column("Episode/Year", justify="center")
        table.add_column("Quality")
        table.add_column("Group")
        table.add_column("Confidence", justify="right")
        table.add_column("Status", justify="center")

        for outcome in outcomes:
            if not outcome.ok:
                table.add_row(
                    outcome.filename,
                    f"[{ERROR_COLOR}]{outcome.error}[/{ERROR_COLOR}]",
                    "",
                    "",
                    "",
                    "",
                    f"[{DIM_COLOR}]-[/{DIM_COLOR}]",
                    self._get_status_symbol(outcome),
                )
                continue
            record = outcome.unwrap()
            quality = " ".join(value for value in (record.screen_size, record.source, record.video_codec) if value)
            table.add_row(
                outcome.filename,
                record.title or "",
                record.media_type.value,
                _episode_or_year(record),
                quality,
                record.release_group or "",
                self._colorize_confidence(record.confidence),
                self._get_status_symbol(outcome),
            )
        return table

    def print_outcomes(self, outcomes: Sequence[ParseOutcome]) -> None:
        """Print a property table for a single outcome, a results table otherwise."""
        if len(outcomes) == 1:
            table = self.render_record_table(outcomes[0])
        else:
            table = self.render_batch_table(outcomes)
        self.console.print()
        self.console.print(table)

    @staticmethod
    def render_plain_text(outcomes: Sequence[ParseOutcome]) -> str:
        """Render outcomes without Rich formatting."""
        lines = ["", "Parse Results", "-------------"]
        for outcome in outcomes:
            if not outcome.ok:
                lines.append(f"    {outcome.filename} : ERROR {outcome.error}")
                continue
            record = outcome.unwrap()
            detail = ", ".join(
                f"{name}={_format_value(PROPERTY_REGISTRY[name].get(record))}"
                for name in record.detected_properties()
            )
            lines.append(f"    {outcome.filename} : {detail} (confidence {record.confidence:.2f})")
        return "\n".join(lines)
