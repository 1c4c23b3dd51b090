from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field, fields
from functools import cached_property, lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from .errors import ConfigurationError
from .logging_utils import render_fields_block
from .utils import dump_yaml_file, load_yaml_file, normalize_token
from .validation import validate_config_data

LOGGER = logging.getLogger(__name__)

SynonymTable = Mapping[str, tuple[str, ...]]

_SYNONYM_TABLES = (
    "video_codecs",
    "video_profiles",
    "audio_codecs",
    "audio_channels",
    "audio_profiles",
    "sources",
    "screen_sizes",
    "languages",
    "countries",
    "editions",
    "other",
    "episode_details",
)
_WORD_LISTS = (
    "common_words",
    "separators",
    "subtitle_prefixes",
    "subtitle_suffixes",
    "release_group_false_positives",
)
_NAMED_LISTS = ("group_markers", "containers", "episodes", "priorities")


def _empty_table() -> SynonymTable:
    return MappingProxyType({})


@dataclass(frozen=True)
class RuleConfiguration:
    """Read-only tables consumed by the rules.

    Synonym tables map a canonical value to the surface forms that produce it. Instances
    are shared across parses; use :meth:`merged` to derive a variant.
    """

    common_words: tuple[str, ...] = ()
    separators: tuple[str, ...] = ()
    group_markers: SynonymTable = field(default_factory=_empty_table)
    video_codecs: SynonymTable = field(default_factory=_empty_table)
    video_profiles: SynonymTable = field(default_factory=_empty_table)
    audio_codecs: SynonymTable = field(default_factory=_empty_table)
    audio_channels: SynonymTable = field(default_factory=_empty_table)
    audio_profiles: SynonymTable = field(default_factory=_empty_table)
    sources: SynonymTable = field(default_factory=_empty_table)
    screen_sizes: SynonymTable = field(default_factory=_empty_table)
    languages: SynonymTable = field(default_factory=_empty_table)
    subtitle_prefixes: tuple[str, ...] = ()
    subtitle_suffixes: tuple[str, ...] = ()
    countries: SynonymTable = field(default_factory=_empty_table)
    editions: SynonymTable = field(default_factory=_empty_table)
    other: SynonymTable = field(default_factory=_empty_table)
    episode_details: SynonymTable = field(default_factory=_empty_table)
    containers: SynonymTable = field(default_factory=_empty_table)
    episodes: SynonymTable = field(default_factory=_empty_table)
    priorities: SynonymTable = field(default_factory=_empty_table)
    release_group_false_positives: tuple[str, ...] = ()

    def container_kind(self, extension: str) -> Optional[str]:
        """Return "video", "audio" or "subtitle" for a known extension."""
        lowered = extension.lower()
        for kind, extensions in self.containers.items():
            if lowered in extensions:
                return kind
        return None

    def rank(self, table: str, value: str) -> int:
        """Priority-table rank of ``value``; higher wins, unknown values rank 0."""
        ordered = self.priorities.get(table, ())
        if value not in ordered:
            return 0
        return len(ordered) - ordered.index(value)

    @cached_property
    def vocabulary(self) -> frozenset[str]:
        """Normalized canonical values and surface forms of every synonym table."""
        words: set[str] = set()
        for key in _SYNONYM_TABLES:
            for canonical, forms in getattr(self, key).items():
                words.add(normalize_token(canonical))
                words.update(normalize_token(form) for form in forms)
        words.discard("")
        return frozenset(words)

    def is_keyword(self, token: str) -> bool:
        return normalize_token(token) in self.vocabulary

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, Mapping):
                data[item.name] = {key: list(words) for key, words in value.items()}
            else:
                data[item.name] = list(value)
        return data

    def merged(self, overrides: Union[RuleConfiguration, Mapping[str, Any]]) -> RuleConfiguration:
        """Return a new configuration with ``overrides`` applied on top of this one.

        Mappings merge per key with the right-hand side winning; lists are replaced.
        Empty tables of a :class:`RuleConfiguration` override are ignored.
        """
        if isinstance(overrides, RuleConfiguration):
            updates = {key: value for key, value in overrides.to_dict().items() if value}
        else:
            updates = dict(overrides)
        combined = _deep_update(self.to_dict(), updates)
        return build_configuration(combined)

    def save(self, path: Path) -> None:
        dump_yaml_file(path, self.to_dict())


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in updates.items():
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _deep_update(existing, value)
            else:
                target[key] = deepcopy(dict(value))
        elif isinstance(value, list):
            target[key] = deepcopy(value)
        else:
            target[key] = value
    return target


def _build_words(data: Mapping[str, Any], key: str) -> tuple[str, ...]:
    raw = data.get(key) or []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise ValueError(f"'{key}' must be a list of strings")
    return tuple(str(item) for item in raw)


def _build_table(data: Mapping[str, Any], key: str) -> SynonymTable:
    raw = data.get(key) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"'{key}' must be a mapping of name -> list of strings")
    table: dict[str, tuple[str, ...]] = {}
    for name, words in raw.items():
        if words is None:
            continue
        if isinstance(words, str):
            words = [words]
        if not isinstance(words, list):
            raise ValueError(f"'{key}.{name}' must be a list of strings")
        table[str(name)] = tuple(str(word) for word in words)
    return MappingProxyType(table)


def build_configuration(data: Mapping[str, Any]) -> RuleConfiguration:
    """Build a configuration from plain (YAML-shaped) data."""
    values: dict[str, Any] = {}
    for key in _WORD_LISTS:
        values[key] = _build_words(data, key)
    for key in _SYNONYM_TABLES + _NAMED_LISTS:
        values[key] = _build_table(data, key)
    return RuleConfiguration(**values)


@lru_cache
def default_configuration() -> RuleConfiguration:
    """Load the built-in configuration shipped with the package."""
    with resources.as_file(resources.files(__package__) / "defaults.yaml") as path:
        data = load_yaml_file(path)
    return build_configuration(data)


def load_config(path: Path, base: Optional[RuleConfiguration] = None) -> RuleConfiguration:
    """Load a YAML override file and merge it over ``base`` (the defaults when omitted)."""
    data = load_yaml_file(path)
    report = validate_config_data(data)
    for warning in report.warnings:
        LOGGER.warning("%s: %s (%s)", path, warning.message, warning.path)
    if not report.is_valid:
        details = "; ".join(f"{issue.path}: {issue.message}" for issue in report.errors)
        raise ConfigurationError(f"Invalid rule configuration {path}: {details}", report.errors)

    configuration = (base or default_configuration()).merged(data)
    LOGGER.debug(
        render_fields_block(
            "Loaded Rule Configuration",
            {
                "Path": path,
                "Overridden Keys": sorted(data),
                "Video Codecs": len(configuration.video_codecs),
                "Sources": len(configuration.sources),
                "Languages": len(configuration.languages),
            },
        )
    )
    return configuration
