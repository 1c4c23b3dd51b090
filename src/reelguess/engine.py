"""Rule engine: extraction, post-processing and conflict resolution."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .config import RuleConfiguration
from .errors import ConflictResolutionError, InvalidInputError, ParseError, RuleExecutionError
from .logging_utils import render_fields_block, render_match_block, render_section_block
from .models import MULTI_VALUED_PROPERTIES, Match, ParseContext, ParseOptions
from .patterns import PatternCache
from .rules import PostProcessor, Rule, default_rules

LOGGER = logging.getLogger(__name__)


def resolve_conflicts(matches: Sequence[Match], filename: Optional[str] = None) -> dict[str, list[Match]]:
    """Group matches by property and keep the winners.

    Groups keep first-appearance order. Multi-valued properties keep one match per
    distinct value; single-valued properties keep the highest-confidence match, the
    earliest one on ties.
    """
    grouped: dict[str, list[Match]] = {}
    for match in matches:
        grouped.setdefault(match.property, []).append(match)

    resolved: dict[str, list[Match]] = {}
    for prop, group in grouped.items():
        if not group:
            raise ConflictResolutionError(f"No candidates to resolve for '{prop}'", prop, filename)
        if prop in MULTI_VALUED_PROPERTIES:
            seen: set[str] = set()
            unique: list[Match] = []
            for match in group:
                if match.value in seen:
                    continue
                seen.add(match.value)
                unique.append(match)
            resolved[prop] = unique
        else:
            best = group[0]
            for match in group[1:]:
                if match.confidence > best.confidence:
                    best = match
            resolved[prop] = [best]
    return resolved


class RuleEngine:
    """Runs an ordered rule set against one filename at a time.

    Rules run by descending priority; rules sharing a priority keep their declaration
    order. The engine holds no per-parse state, so one instance can serve concurrent
    parses as long as they share a thread-safe :class:`PatternCache`.
    """

    def __init__(
        self,
        configuration: RuleConfiguration,
        *,
        rules: Optional[Sequence[Rule]] = None,
        pattern_cache: Optional[PatternCache] = None,
    ) -> None:
        self.configuration = configuration
        self.pattern_cache = pattern_cache if pattern_cache is not None else PatternCache()
        declared = list(rules) if rules is not None else default_rules(configuration)
        # sorted() is stable, so declaration order breaks priority ties.
        self._rules: tuple[Rule, ...] = tuple(sorted(declared, key=lambda rule: -rule.priority))

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def rules_for(self, property: str) -> list[Rule]:
        return [rule for rule in self._rules if property in rule.properties]

    def run(self, filename: str, options: Optional[ParseOptions] = None) -> dict[str, list[Match]]:
        """Run every stage and return resolved matches grouped by property."""
        if filename is None or not filename.strip():
            raise InvalidInputError("Filename is empty", filename)

        options = options or ParseOptions()
        context = ParseContext(filename, options, self.configuration, self.pattern_cache)
        skipped = self._extract(context)
        matches = self._post_process(context)
        resolved = resolve_conflicts(matches, filename)

        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug(
                render_section_block(
                    f"Rule Pass: {filename}",
                    [
                        ("Applied", [rule.name for rule in self._rules if rule.name not in skipped]),
                        ("Skipped", skipped),
                    ],
                )
            )
            LOGGER.debug(
                render_match_block(
                    "Resolved Matches",
                    {"Filename": filename, "Raw": len(context.matches), "Properties": list(resolved)},
                    [match for group in resolved.values() for match in group],
                )
            )
        return resolved

    def _extract(self, context: ParseContext) -> list[str]:
        """Run every applicable rule; return the names of the rules that were skipped."""
        skipped: list[str] = []
        for rule in self._rules:
            if not rule.should_apply(context):
                skipped.append(rule.name)
                continue
            try:
                produced = rule.matches(context)
                for match in produced:
                    if context.options.should_process(match.property):
                        context.add_match(match)
            except ParseError:
                raise
            except Exception as exc:
                LOGGER.error(
                    render_fields_block(
                        "Rule Failed",
                        {"Rule": rule.name, "Filename": context.original, "Error": exc},
                    )
                )
                raise RuleExecutionError(
                    f"Rule {rule.name} failed on {context.original!r}: {exc}", rule.name, context.original
                ) from exc
        return skipped

    def _post_process(self, context: ParseContext) -> list[Match]:
        matches = list(context.matches)
        for rule in self._rules:
            if not isinstance(rule, PostProcessor) or not rule.should_apply(context):
                continue
            try:
                matches = list(rule.post_process(matches, context))
            except ParseError:
                raise
            except Exception as exc:
                LOGGER.error(
                    render_fields_block(
                        "Post-Processing Failed",
                        {"Rule": rule.name, "Filename": context.original, "Error": exc},
                    )
                )
                raise RuleExecutionError(
                    f"Post-processing in {rule.name} failed on {context.original!r}: {exc}",
                    rule.name,
                    context.original,
                ) from exc
        return matches
