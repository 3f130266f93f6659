"""Locale tables for user-facing search messages."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterator

from mapsearch.services.exceptions import SearchError

GENERIC_ERROR_KEY = SearchError.message_key


class I18nService:
    """Looks messages up in ``<locale>.json`` tables.

    A regional locale such as ``es-MX`` tries ``es-mx.json`` first, then the
    bare language table ``es.json``, then the default locale. Unknown keys
    come back unchanged.
    """

    def __init__(self, *, locales_path: str | Path | None = None, default_locale: str = "en") -> None:
        self.locales_path = Path(locales_path or Path(__file__).with_name("locales"))
        self.default_locale = self._canonical(default_locale)

    def gettext(self, key: str, *, locale: str | None = None, **kwargs: Any) -> str:
        text = None
        for candidate in self._candidates(locale or self.default_locale):
            text = self._lookup(candidate, key)
            if text is not None:
                break
        if text is None:
            text = key
        return text.format(**kwargs) if kwargs else text

    def translate_error(self, exc: BaseException, *, locale: str | None = None) -> str:
        key = exc.message_key if isinstance(exc, SearchError) else GENERIC_ERROR_KEY
        return self.gettext(key, locale=locale)

    def available_locales(self) -> list[str]:
        return sorted(path.stem for path in self.locales_path.glob("*.json"))

    @staticmethod
    def _canonical(locale: str) -> str:
        return locale.replace("_", "-").lower()

    def _candidates(self, locale: str) -> Iterator[str]:
        seen: set[str] = set()
        full = self._canonical(locale)
        for candidate in (
            full,
            full.split("-", 1)[0],
            self.default_locale,
            self.default_locale.split("-", 1)[0],
        ):
            if candidate not in seen:
                seen.add(candidate)
                yield candidate

    @lru_cache(maxsize=16)
    def _load_locale(self, locale: str) -> dict[str, str]:
        file_path = self.locales_path / f"{locale}.json"
        if not file_path.exists():
            return {}
        with file_path.open("r", encoding="utf-8") as fp:
            return json.load(fp)

    def _lookup(self, locale: str, key: str) -> str | None:
        table = self._load_locale(locale)
        return table.get(key)


__all__ = ["I18nService"]
