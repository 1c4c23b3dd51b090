"""Compiled pattern cache shared by concurrent parses."""

from __future__ import annotations

import logging
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Union

LOGGER = logging.getLogger(__name__)

DEFAULT_FLAGS = re.IGNORECASE

PatternLike = Union[str, re.Pattern[str]]


class ReadWriteLock:
    """Many readers or one writer."""

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def reading(self) -> Iterator[None]:
        with self._condition:
            while self._writer:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def writing(self) -> Iterator[None]:
        with self._condition:
            while self._writer or self._readers:
                self._condition.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._condition:
                self._writer = False
                self._condition.notify_all()


@dataclass(frozen=True, slots=True)
class PatternHit:
    """One regex hit: overall span plus captured groups and their spans."""

    span: tuple[int, int]
    groups: tuple[Optional[str], ...]
    group_spans: tuple[tuple[int, int], ...]
    text: str

    def group(self, index: int = 0) -> Optional[str]:
        if index == 0:
            return self.text
        return self.groups[index - 1]

    def group_span(self, index: int = 0) -> tuple[int, int]:
        if index == 0:
            return self.span
        return self.group_spans[index - 1]

    @classmethod
    def from_match(cls, match: re.Match[str]) -> PatternHit:
        count = len(match.groups())
        return cls(
            span=match.span(),
            groups=match.groups(),
            group_spans=tuple(match.span(index) for index in range(1, count + 1)),
            text=match.group(0),
        )


class PatternCache:
    """Cache of compiled patterns keyed by ``(pattern, flags)``.

    Lookups take the read side of a reader/writer lock; inserting a newly compiled
    pattern takes the write side.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._compiled: dict[tuple[str, int], re.Pattern[str]] = {}

    def __len__(self) -> int:
        with self._lock.reading():
            return len(self._compiled)

    def compile(self, pattern: PatternLike, flags: int = DEFAULT_FLAGS) -> re.Pattern[str]:
        if isinstance(pattern, re.Pattern):
            return pattern
        key = (pattern, int(flags))
        with self._lock.reading():
            compiled = self._compiled.get(key)
        if compiled is not None:
            return compiled

        compiled = re.compile(pattern, flags)
        with self._lock.writing():
            existing = self._compiled.setdefault(key, compiled)
        LOGGER.debug("Compiled pattern %r (flags=%d); cache size %d", pattern, flags, len(self._compiled))
        return existing

    def find_all(self, pattern: PatternLike, text: str, flags: int = DEFAULT_FLAGS) -> list[PatternHit]:
        compiled = self.compile(pattern, flags)
        return [PatternHit.from_match(match) for match in compiled.finditer(text)]

    def find_first(self, pattern: PatternLike, text: str, flags: int = DEFAULT_FLAGS) -> Optional[PatternHit]:
        match = self.compile(pattern, flags).search(text)
        if match is None:
            return None
        return PatternHit.from_match(match)

    def clear(self) -> None:
        with self._lock.writing():
            self._compiled.clear()
