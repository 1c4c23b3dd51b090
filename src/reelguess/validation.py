from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from jsonschema import Draft7Validator


@dataclass(slots=True)
class ValidationIssue:
    """Represents a single validation problem."""

    severity: str
    path: str
    message: str
    code: str
    fix_suggestion: Optional[str] = None


@dataclass(slots=True)
class ValidationReport:
    """Aggregates validation warnings and errors."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


_STRING_LIST = {"type": "array", "items": {"type": "string"}}
_SYNONYM_TABLE = {
    "type": "object",
    "additionalProperties": {"oneOf": [_STRING_LIST, {"type": "null"}]},
}

SYNONYM_TABLE_KEYS = (
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

# Priority tables rank canonical values of the matching synonym table.
PRIORITY_TABLES = {
    "video_codec": "video_codecs",
    "source": "sources",
    "screen_size": "screen_sizes",
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "common_words": _STRING_LIST,
        "separators": _STRING_LIST,
        "subtitle_prefixes": _STRING_LIST,
        "subtitle_suffixes": _STRING_LIST,
        "release_group_false_positives": _STRING_LIST,
        "group_markers": {
            "type": "object",
            "properties": {"start": _STRING_LIST, "end": _STRING_LIST},
            "additionalProperties": False,
        },
        "containers": {
            "type": "object",
            "properties": {
                "video": _STRING_LIST,
                "audio": _STRING_LIST,
                "subtitle": _STRING_LIST,
            },
            "additionalProperties": False,
        },
        "episodes": {
            "type": "object",
            "properties": {"season_words": _STRING_LIST, "episode_words": _STRING_LIST},
            "additionalProperties": False,
        },
        "priorities": {
            "type": "object",
            "properties": {name: _STRING_LIST for name in PRIORITY_TABLES},
            "additionalProperties": False,
        },
        **{key: _SYNONYM_TABLE for key in SYNONYM_TABLE_KEYS},
    },
    "additionalProperties": False,
}


def _format_jsonschema_path(path: Sequence[Any]) -> str:
    if not path:
        return "<root>"
    tokens: List[str] = []
    for part in path:
        if isinstance(part, int):
            if tokens:
                tokens[-1] = f"{tokens[-1]}[{part}]"
            else:
                tokens.append(f"[{part}]")
        else:
            tokens.append(str(part))
    return ".".join(tokens) if tokens else "<root>"


def _suggest_schema_fix(path: str, message: str) -> Optional[str]:
    if "Additional properties are not allowed" in message:
        return "Remove the unknown key or check its spelling against the built-in defaults.yaml"
    if "is not of type 'array'" in message or "is not valid under any of the given schemas" in message:
        return f"Define '{path}' as a YAML list, e.g. [x264, H264]"
    if "is not of type 'string'" in message:
        return "Quote values YAML would otherwise read as numbers or booleans (e.g. \"5.1\", \"no\")"
    return None


def validate_config_data(data: Dict[str, Any]) -> ValidationReport:
    """Validate a rule configuration document.

    Args:
        data: Parsed YAML document (defaults or user overrides)

    Returns:
        ValidationReport containing any errors or warnings found
    """
    report = ValidationReport()
    validator = Draft7Validator(CONFIG_SCHEMA)

    errors = sorted(
        validator.iter_errors(data),
        key=lambda exc: _format_jsonschema_path(list(exc.absolute_path)),
    )
    for error in errors:
        error_path = _format_jsonschema_path(list(error.absolute_path))
        report.errors.append(
            ValidationIssue(
                severity="error",
                path=error_path,
                message=error.message,
                code="schema",
                fix_suggestion=_suggest_schema_fix(error_path, error.message),
            )
        )

    if report.is_valid:
        _validate_semantics(data, report)
    return report


def _validate_semantics(data: Dict[str, Any], report: ValidationReport) -> None:
    for key in SYNONYM_TABLE_KEYS:
        table = data.get(key) or {}
        seen: Dict[str, str] = {}
        for canonical, words in table.items():
            for word in words or []:
                lowered = word.lower()
                previous = seen.get(lowered)
                if previous is not None and previous != canonical:
                    report.warnings.append(
                        ValidationIssue(
                            severity="warning",
                            path=f"{key}.{canonical}",
                            message=f"Surface form '{word}' is also listed under '{previous}'",
                            code="duplicate-surface-form",
                        )
                    )
                seen[lowered] = canonical

    priorities = data.get("priorities") or {}
    for name, table_key in PRIORITY_TABLES.items():
        table = data.get(table_key)
        if not table:
            continue
        for value in priorities.get(name) or []:
            if value not in table:
                report.warnings.append(
                    ValidationIssue(
                        severity="warning",
                        path=f"priorities.{name}",
                        message=f"'{value}' is not a canonical value of '{table_key}'",
                        code="unknown-priority-value",
                        fix_suggestion=f"Use one of: {', '.join(sorted(table))}",
                    )
                )

    markers = data.get("group_markers") or {}
    starts, ends = markers.get("start") or [], markers.get("end") or []
    if len(starts) != len(ends):
        report.warnings.append(
            ValidationIssue(
                severity="warning",
                path="group_markers",
                message=f"{len(starts)} start markers but {len(ends)} end markers; unpaired markers are ignored",
                code="unpaired-group-marker",
            )
        )
