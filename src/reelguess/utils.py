from __future__ import annotations

import functools
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml


NORMALIZE_PATTERN = re.compile(r"[^a-z0-9]+")
WHITESPACE_PATTERN = re.compile(r"\s+")
EXTENSION_PATTERN = re.compile(r"\.([A-Za-z0-9]{2,4})$")

MINOR_WORDS = frozenset({"of", "the", "and", "a", "an", "in", "on", "at", "to", "for", "with", "by"})


@functools.lru_cache(maxsize=4096)
def normalize_token(value: str) -> str:
    """Return a lower-cased token with every non-alphanumeric character removed."""
    lowered = value.lower()
    stripped = NORMALIZE_PATTERN.sub("", lowered)
    return stripped


def basename(path: str) -> str:
    """Return the last path component, accepting both ``/`` and ``\\`` separators."""
    return re.split(r"[\\/]", path)[-1]


def file_extension(filename: str) -> Optional[str]:
    """Return the lower-cased trailing extension when it looks like one.

    Two to four alphanumerics containing at least one letter; ``Movie.2019`` has none.
    """
    match = EXTENSION_PATTERN.search(filename)
    if match is None:
        return None
    extension = match.group(1)
    if extension.isdigit():
        return None
    return extension.lower()


def replace_separators(text: str, separators: Iterable[str]) -> str:
    """Replace every separator character with a space and collapse whitespace."""
    cleaned = text
    for separator in separators:
        if separator.strip():
            cleaned = cleaned.replace(separator, " ")
    return WHITESPACE_PATTERN.sub(" ", cleaned).strip()


def capitalize_word(word: str) -> str:
    """Capitalize a single-case word; mixed-case words such as ``McQueen`` keep their casing."""
    if not word:
        return word
    if word.islower() or word.isupper():
        return word[0].upper() + word[1:].lower()
    return word


def format_title(text: str, minor_words: Iterable[str] = MINOR_WORDS) -> str:
    """Word-capitalize ``text``; minor words stay lower-case unless they start the title."""
    minor = {word.lower() for word in minor_words}
    words = [word for word in WHITESPACE_PATTERN.split(text.strip()) if word]
    formatted: list[str] = []
    for index, word in enumerate(words):
        if index > 0 and word.lower() in minor:
            formatted.append(word.lower())
        else:
            formatted.append(capitalize_word(word))
    return " ".join(formatted)


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def load_yaml_file(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a YAML mapping at the top level")
    return data


def dump_yaml_file(path: Path, data: Dict[str, Any]) -> None:
    ensure_directory(path.parent)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False, allow_unicode=True)
