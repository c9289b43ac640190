from __future__ import annotations

"""Locale catalogs and per-turn locale resolution.

Catalogs are flat key -> string JSON files, one per locale, named after the
locale tag (``en-US.json``, ``ja-JP.json``). A resolved ``Catalog`` is an
immutable value that travels with the turn; there is no process-wide
"current locale".
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger("transactions.i18n")


def normalize_locale(tag: Optional[str]) -> str:
    """Lowercase a locale tag and use '-' as the subtag separator."""
    if not tag:
        return ""
    return tag.strip().replace("_", "-").lower()


def load_catalog_file(path: Path) -> Dict[str, str]:
    """Purpose: Read one catalog JSON file into a key -> string dict.
    Inputs/Outputs: Input is a Path; output is a dict of string values.
    Side Effects / State: None beyond reading the filesystem.
    Dependencies: Uses json.loads; BOM is stripped before decoding.
    Failure Modes: JSONDecodeError or a non-object payload raises ValueError.
    If Removed: No locale can be loaded and the app fails at startup.
    Testing Notes: Load a file with a BOM and one with a list payload.
    """
    text = path.read_text(encoding="utf-8").lstrip("\ufeff")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid catalog file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Catalog file {path} must contain a JSON object")
    return {str(key): str(value) for key, value in data.items()}


@dataclass(frozen=True)
class Catalog:
    """Read-only string table for one locale, with a fallback table for misses."""
    locale: str
    strings: Mapping[str, str]
    fallback: Mapping[str, str] = field(default_factory=dict)

    def gettext(self, key: str) -> str:
        value = self.strings.get(key)
        if value is not None:
            return value
        value = self.fallback.get(key)
        if value is not None:
            logger.warning("catalog miss locale=%s key=%s using default locale", self.locale, key)
            return value
        logger.warning("catalog miss locale=%s key=%s", self.locale, key)
        return key

    __call__ = gettext


class LocaleResolver:
    """Holds every loaded catalog and picks one for a requested locale tag."""

    def __init__(self, catalogs: Dict[str, Dict[str, str]], default_locale: str) -> None:
        """Purpose: Index the loaded catalogs and pin the default locale.
        Inputs/Outputs: Inputs are locale -> strings and the default tag; no return.
        Side Effects / State: Builds immutable Catalog values once.
        Dependencies: Uses normalize_locale for case-insensitive matching.
        Failure Modes: ValueError when the default locale has no catalog.
        If Removed: Handlers cannot localize prompts.
        Testing Notes: Construct with and without the default locale present.
        """
        by_key = {normalize_locale(tag): tag for tag in catalogs}
        default_key = normalize_locale(default_locale)
        if default_key not in by_key:
            raise ValueError(f"Default locale '{default_locale}' has no catalog")
        default_strings = MappingProxyType(dict(catalogs[by_key[default_key]]))
        self._default_key = default_key
        self._catalogs: Dict[str, Catalog] = {}
        for key, tag in by_key.items():
            strings = MappingProxyType(dict(catalogs[tag]))
            fallback = MappingProxyType({}) if key == default_key else default_strings
            self._catalogs[key] = Catalog(locale=tag, strings=strings, fallback=fallback)

    @classmethod
    def from_directory(cls, directory: Path, default_locale: str) -> "LocaleResolver":
        """Load every ``*.json`` catalog found in ``directory``."""
        catalogs = {path.stem: load_catalog_file(path) for path in sorted(directory.glob("*.json"))}
        logger.info("loaded catalogs dir=%s locales=%s", directory, sorted(catalogs))
        return cls(catalogs, default_locale)

    @property
    def supported_locales(self) -> List[str]:
        return sorted(catalog.locale for catalog in self._catalogs.values())

    @property
    def default(self) -> Catalog:
        return self._catalogs[self._default_key]

    def resolve(self, tag: Optional[str]) -> Catalog:
        """Purpose: Pick the catalog for a request's locale tag.
        Inputs/Outputs: Input is a tag such as "ja-JP" or "ja"; output is a Catalog.
        Side Effects / State: None; catalogs are shared read-only values.
        Dependencies: Exact match, then same primary language, then default.
        Failure Modes: Never raises; unknown or empty tags get the default catalog.
        If Removed: Every turn would be answered in one language.
        Testing Notes: Resolve "ja_jp", "ja", "fr-FR" and "".
        """
        key = normalize_locale(tag)
        if key in self._catalogs:
            return self._catalogs[key]
        language = key.split("-", 1)[0]
        if language:
            for candidate_key in sorted(self._catalogs):
                if candidate_key.split("-", 1)[0] == language:
                    return self._catalogs[candidate_key]
        if key:
            logger.debug("unsupported locale=%s using default=%s", tag, self.default.locale)
        return self.default
