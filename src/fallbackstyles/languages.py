"""Packaged catalog of preview languages and their coverage character sets."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from importlib import resources
from typing import Any, Literal

import yaml


_DATA_PACKAGE = "fallbackstyles.data"
_CATALOG = "languages.yaml"

LANGUAGE_GROUPS: tuple[str, ...] = (
    "Western Latin (Americas & Western Europe)",
    "APAC - CJK (East Asia)",
    "EEMEA - Right-to-Left (Middle East & South Asia)",
    "EEMEA - Cyrillic, Greek & Eastern Europe",
    "APAC - South & Southeast Asia (Complex Scripts)",
    "Sub-Saharan Africa",
    "Nordic & Baltic (Northern Europe)",
    "Other",
)
OTHER_GROUP = LANGUAGE_GROUPS[-1]

SampleKind = Literal["full", "representative"]


@dataclass(frozen=True, slots=True)
class Language:
    """One preview language.

    ``characters`` is the set checked by the coverage walker. ``sample`` says
    whether it is the full alphabet of the script or only a representative
    subset (CJK).
    """

    id: str
    name: str
    group: str = OTHER_GROUP
    sample_text: str = ""
    characters: str = ""
    sample: SampleKind = "full"
    rtl: bool = False

    @property
    def coverage_text(self) -> str:
        return self.characters or self.sample_text

    @property
    def is_representative(self) -> bool:
        return self.sample == "representative"


def _language_from_mapping(entry: Mapping[str, Any]) -> Language:
    try:
        language_id = str(entry["id"])
    except KeyError as exc:
        raise ValueError(f"Language entry without id: {dict(entry)!r}") from exc
    group = str(entry.get("group") or OTHER_GROUP)
    if group not in LANGUAGE_GROUPS:
        group = OTHER_GROUP
    sample = entry.get("sample", "full")
    if sample not in ("full", "representative"):
        raise ValueError(f"Language '{language_id}' has unknown sample kind {sample!r}.")
    return Language(
        id=language_id,
        name=str(entry.get("name") or language_id),
        group=group,
        sample_text=str(entry.get("sample_text") or ""),
        characters=str(entry.get("characters") or ""),
        sample=sample,
        rtl=bool(entry.get("rtl", False)),
    )


def parse_languages(raw: str | bytes) -> tuple[Language, ...]:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    data = yaml.safe_load(raw) or []
    if not isinstance(data, list):
        raise ValueError("Language catalog must be a list of entries.")
    return tuple(_language_from_mapping(entry) for entry in data)


_DEFAULT_CATALOG: tuple[Language, ...] | None = None


def load_languages() -> tuple[Language, ...]:
    """Return the packaged catalog, reading it once."""
    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        resource = resources.files(_DATA_PACKAGE) / _CATALOG
        _DEFAULT_CATALOG = parse_languages(resource.read_text(encoding="utf-8"))
    return _DEFAULT_CATALOG


def get_language(language_id: str, languages: Iterable[Language] | None = None) -> Language:
    for language in languages if languages is not None else load_languages():
        if language.id == language_id:
            return language
    raise KeyError(f"Unknown language '{language_id}'.")


def languages_by_group(
    languages: Iterable[Language] | None = None,
    search: str = "",
) -> dict[str, list[Language]]:
    """Group languages in catalog group order, skipping empty groups.

    ``search`` filters case-insensitively on the name or the id.
    """
    needle = search.strip().lower()
    grouped: dict[str, list[Language]] = {group: [] for group in LANGUAGE_GROUPS}
    for language in languages if languages is not None else load_languages():
        if needle and needle not in language.name.lower() and needle not in language.id.lower():
            continue
        grouped.setdefault(language.group, []).append(language)
    return {group: items for group, items in grouped.items() if items}


__all__ = [
    "LANGUAGE_GROUPS",
    "Language",
    "get_language",
    "languages_by_group",
    "load_languages",
    "parse_languages",
]
