"""Turn resolved matches into a :class:`ParsedRecord`."""

from __future__ import annotations

from statistics import fmean
from typing import Mapping, Optional, Sequence

from .models import PROPERTY_REGISTRY, Match, MediaType, ParsedRecord, ParseOptions
from .rules.container import mimetype_for
from .utils import file_extension


def _infer_media_type(record: ParsedRecord) -> MediaType:
    if record.season is not None or record.episode is not None:
        return MediaType.EPISODE
    if record.year is not None:
        return MediaType.MOVIE
    return MediaType.UNKNOWN


def _fallback_container(filename: str, matches: Sequence[Match]) -> Optional[str]:
    extension = file_extension(filename)
    if extension is None:
        return None
    span = (len(filename) - len(extension), len(filename))
    if any(match.overlaps(span) for match in matches):
        return None
    return extension


def assemble(
    filename: str,
    resolved: Mapping[str, Sequence[Match]],
    options: Optional[ParseOptions] = None,
) -> ParsedRecord:
    """Dispatch each resolved match into its record field, then fill derived fields.

    Media type comes from an explicit match, else the options hint, else it is inferred
    from season/episode/year. Container falls back to the trailing extension and the
    mimetype to the container lookup.
    """
    options = options or ParseOptions()
    record = ParsedRecord()
    survivors: list[Match] = []
    explicit_type: Optional[MediaType] = None

    for prop, group in resolved.items():
        survivors.extend(group)
        if prop == "media_type":
            explicit_type = MediaType(group[0].value)
            continue
        accessor = PROPERTY_REGISTRY.get(prop)
        if accessor is None:
            continue
        if accessor.multi_valued:
            values = getattr(record, prop)
            for match in group:
                if match.value not in values:
                    values.append(match.value)
        elif accessor.kind == "int":
            setattr(record, prop, int(group[0].value))
        else:
            setattr(record, prop, group[0].value)

    record.media_type = explicit_type or options.media_type or _infer_media_type(record)

    if record.container is None and options.should_process("container"):
        record.container = _fallback_container(filename, survivors)
    if record.mimetype is None and options.should_process("mimetype"):
        record.mimetype = mimetype_for(record.container)

    record.confidence = fmean(match.confidence for match in survivors) if survivors else 0.0
    record.matches = tuple(survivors)
    if options.output_input_string:
        record.input_string = filename
    return record
