"""Plain-text blocks for multi-line debug and warning log records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableSequence, Sequence
from textwrap import wrap
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:  # pragma: no cover
    from .models import Match

DEFAULT_WRAP_WIDTH = 110
DEFAULT_LABEL_WIDTH = 22
DEFAULT_INDENT = "    "

FieldMapping = Union[Mapping[str, object], Sequence[tuple[str, object]]]


def _coerce_items(fields: FieldMapping) -> list[tuple[str, object]]:
    if isinstance(fields, Mapping):
        return list(fields.items())
    return list(fields)


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float):
        return f"{value:.3f}"
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value, key=str) if isinstance(value, (set, frozenset)) else value
        return ", ".join(_stringify(item) for item in items)
    return str(value)


def _wrap_text(text: str, width: int) -> list[str]:
    lines: list[str] = []
    for raw_line in text.splitlines() or [""]:
        lines.extend(wrap(raw_line, width=width) or [""])
    return lines


def describe_match(match: Match) -> str:
    """One-line summary: ``property=value [start:end] conf rule (tags)``."""
    text = f"{match.property}={match.value!r} [{match.start}:{match.end}] {match.confidence:.2f} {match.rule_id}"
    if match.tags:
        text += f" ({', '.join(sorted(match.tags))})"
    return text


class LogBlockBuilder:
    def __init__(
        self,
        title: str,
        *,
        wrap_width: int = DEFAULT_WRAP_WIDTH,
        label_width: int = DEFAULT_LABEL_WIDTH,
        indent: str = DEFAULT_INDENT,
        pad_top: bool = True,
    ) -> None:
        self.title = title
        self.wrap_width = wrap_width
        self.label_width = label_width
        self.indent = indent
        self.lines: MutableSequence[str] = []
        if pad_top:
            self.lines.append("")
        self.lines.append(title)
        self.lines.append("-" * len(title))

    def add_blank_line(self) -> None:
        if self.lines and self.lines[-1] != "":
            self.lines.append("")

    def add_fields(self, fields: FieldMapping | None) -> None:
        items = _coerce_items(fields) if fields else []
        if not items:
            return

        label_width = max(min(max(len(str(key)) for key, _ in items), self.label_width), 8)
        value_width = max(self.wrap_width - len(self.indent) - label_width - 4, 32)
        for key, value in items:
            wrapped = _wrap_text(_stringify(value), value_width)
            self.lines.append(f"{self.indent}{str(key):<{label_width}}: {wrapped[0]}")
            for continuation in wrapped[1:]:
                self.lines.append(f"{self.indent}{'':<{label_width}}  {continuation}")

    def add_section(self, heading: str, items: Iterable[object], *, empty_label: str = "(none)") -> None:
        self.add_blank_line()
        self.lines.append(f"{heading}:")
        materialized = [item for item in items if item is not None]
        if not materialized:
            self.lines.append(f"{self.indent}{empty_label}")
            return

        bullet = self.indent + "- "
        continuation_indent = self.indent + "  "
        width = max(self.wrap_width - len(bullet), 24)
        for item in materialized:
            wrapped = _wrap_text(_stringify(item), width)
            self.lines.append(f"{bullet}{wrapped[0]}".rstrip())
            for continuation in wrapped[1:]:
                self.lines.append(f"{continuation_indent}{continuation}")

    def add_matches(self, heading: str, matches: Iterable[Match]) -> None:
        self.add_section(heading, [describe_match(match) for match in matches])

    def render(self) -> str:
        return "\n".join(self.lines).rstrip()


def render_fields_block(title: str, fields: FieldMapping, *, pad_top: bool = True) -> str:
    builder = LogBlockBuilder(title, pad_top=pad_top)
    builder.add_fields(fields)
    return builder.render()


def render_section_block(
    title: str,
    sections: Sequence[tuple[str, Sequence[object]]],
    *,
    pad_top: bool = True,
) -> str:
    builder = LogBlockBuilder(title, pad_top=pad_top)
    for heading, items in sections:
        builder.add_section(heading, items)
    return builder.render()


def render_match_block(
    title: str,
    fields: FieldMapping,
    matches: Iterable[Match],
    *,
    heading: str = "Matches",
    pad_top: bool = True,
) -> str:
    builder = LogBlockBuilder(title, pad_top=pad_top)
    builder.add_fields(fields)
    builder.add_matches(heading, matches)
    return builder.render()
