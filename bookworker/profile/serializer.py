"""Converts profiles (including queued jobs) to and from JSON-ready dicts.

File payloads are stored as base64 strings so a persisted queue survives a
restart without losing in-flight submissions.
"""

import base64
import binascii
from dataclasses import asdict
from datetime import datetime
from typing import Any

from bookworker.profile.exceptions import ProfileSerializationError
from bookworker.profile.models import (
    DEFAULT_OPTIONS,
    FileSource,
    Job,
    JobSnapshot,
    JobSource,
    MetadataOverride,
    Options,
    OutputFormat,
    PendingMode,
    PendingModeKind,
    ReplacementRule,
    TranslationEngine,
    UrlSource,
    UserProfile,
)


def profile_to_dict(profile: UserProfile) -> dict[str, Any]:
    return {
        "user_id": profile.user_id,
        "options": _options_to_dict(profile.options),
        "saved_default": (
            _options_to_dict(profile.saved_default)
            if profile.saved_default is not None
            else None
        ),
        "dictionaries": {
            name: _rules_to_list(rules) for name, rules in profile.dictionaries.items()
        },
        "active_dictionaries": list(profile.active_dictionaries),
        "single_use_rules": _rules_to_list(profile.single_use_rules),
        "metadata_override": _metadata_to_dict(profile.metadata_override),
        "custom_css": profile.custom_css,
        "pending_mode": {
            "kind": profile.pending_mode.kind.value,
            "dictionary_name": profile.pending_mode.dictionary_name,
            "pending_title": profile.pending_mode.pending_title,
        },
        "queue": [job_to_dict(job) for job in profile.queue],
    }


def profile_from_dict(data: dict[str, Any]) -> UserProfile:
    """Build a UserProfile from a stored document.

    Raises:
        ProfileSerializationError: if the document is structurally invalid.
    """
    try:
        pending = data.get("pending_mode") or {}
        saved_default = data.get("saved_default")
        return UserProfile(
            user_id=int(data["user_id"]),
            options=_options_from_dict(data.get("options") or {}),
            saved_default=(
                _options_from_dict(saved_default) if saved_default is not None else None
            ),
            dictionaries={
                name: list(_rules_from_list(rules))
                for name, rules in (data.get("dictionaries") or {}).items()
            },
            active_dictionaries=list(data.get("active_dictionaries") or []),
            single_use_rules=list(_rules_from_list(data.get("single_use_rules") or [])),
            metadata_override=_metadata_from_dict(data.get("metadata_override")),
            custom_css=data.get("custom_css"),
            pending_mode=PendingMode(
                kind=PendingModeKind(pending.get("kind", PendingModeKind.NONE.value)),
                dictionary_name=pending.get("dictionary_name"),
                pending_title=pending.get("pending_title"),
            ),
            queue=[job_from_dict(item) for item in data.get("queue") or []],
        )
    except ProfileSerializationError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise ProfileSerializationError(f"Invalid profile document: {exc}") from exc


def job_to_dict(job: Job) -> dict[str, Any]:
    snapshot = job.snapshot
    return {
        "id": job.id,
        "display_name": job.display_name,
        "created_at": job.created_at.isoformat(),
        "source": _source_to_dict(job.source),
        "snapshot": {
            "options": _options_to_dict(snapshot.options),
            "single_use_rules": _rules_to_list(snapshot.single_use_rules),
            "dictionary_rules": _rules_to_list(snapshot.dictionary_rules),
            "metadata_override": _metadata_to_dict(snapshot.metadata_override),
            "custom_css": snapshot.custom_css,
        },
    }


def job_from_dict(data: dict[str, Any]) -> Job:
    try:
        raw_snapshot = data["snapshot"]
        snapshot = JobSnapshot(
            options=_options_from_dict(raw_snapshot.get("options") or {}),
            single_use_rules=_rules_from_list(raw_snapshot.get("single_use_rules") or []),
            dictionary_rules=_rules_from_list(raw_snapshot.get("dictionary_rules") or []),
            metadata_override=_metadata_from_dict(raw_snapshot.get("metadata_override")),
            custom_css=raw_snapshot.get("custom_css"),
        )
        return Job(
            id=data["id"],
            display_name=data["display_name"],
            created_at=datetime.fromisoformat(data["created_at"]),
            source=_source_from_dict(data["source"]),
            snapshot=snapshot,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ProfileSerializationError(f"Invalid job document: {exc}") from exc


def _source_to_dict(source: JobSource) -> dict[str, str]:
    if isinstance(source, FileSource):
        return {
            "type": "file",
            "file_name": source.file_name,
            "content_b64": base64.b64encode(source.content).decode("ascii"),
        }
    return {"type": "url", "url": source.url}


def _source_from_dict(data: dict[str, str]) -> JobSource:
    source_type = data.get("type")
    if source_type == "file":
        try:
            content = base64.b64decode(data["content_b64"], validate=True)
        except binascii.Error as exc:
            raise ProfileSerializationError(f"Invalid file payload: {exc}") from exc
        return FileSource(file_name=data["file_name"], content=content)
    if source_type == "url":
        return UrlSource(url=data["url"])
    raise ProfileSerializationError(f"Unknown job source type: {source_type!r}")


def _options_to_dict(options: Options) -> dict[str, Any]:
    data = asdict(options)
    data["output_format"] = options.output_format.value
    data["translation_engine"] = options.translation_engine.value
    return data


def _options_from_dict(data: dict[str, Any]) -> Options:
    """Unknown keys are dropped and missing keys fall back to the defaults."""
    defaults = _options_to_dict(DEFAULT_OPTIONS)
    merged = {key: data.get(key, default) for key, default in defaults.items()}
    merged["output_format"] = OutputFormat(merged["output_format"])
    merged["translation_engine"] = TranslationEngine(merged["translation_engine"])
    return Options(**merged)


def _rules_to_list(rules: Any) -> list[dict[str, str]]:
    return [{"original": r.original, "replacement": r.replacement} for r in rules]


def _rules_from_list(raw: list[dict[str, str]]) -> tuple[ReplacementRule, ...]:
    return tuple(
        ReplacementRule(original=item["original"], replacement=item["replacement"])
        for item in raw
    )


def _metadata_to_dict(metadata: MetadataOverride | None) -> dict[str, Any] | None:
    if metadata is None:
        return None
    return {"title": metadata.title, "author": metadata.author}


def _metadata_from_dict(data: dict[str, Any] | None) -> MetadataOverride | None:
    if data is None:
        return None
    return MetadataOverride(title=data.get("title"), author=data.get("author"))
