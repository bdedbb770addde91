"""Localizable strings — a text value per locale, owned by a Base property.

The owner supplies the current locale. When the locale switches, the owner
calls str_changed() and the string reports the old and new rendered text
through on_str_changed, which Base routes into its change pipeline.
"""

from __future__ import annotations

from typing import Callable, Protocol

DEFAULT_LOCALE = "en"
_DEFAULT_KEY = "default"

# locale -> string name -> text
_catalog: dict[str, dict[str, str]] = {}


def register_locale_strings(locale: str, strings: dict[str, str]) -> None:
    """Add (or extend) the built-in strings for a locale."""
    _catalog.setdefault(locale, {}).update(strings)


def get_string(name: str, locale: str = "") -> str:
    """Look up a built-in string, falling back to the default locale."""
    for loc in (locale or DEFAULT_LOCALE, DEFAULT_LOCALE):
        text = _catalog.get(loc, {}).get(name)
        if text is not None:
            return text
    return ""


def _key(locale: str) -> str:
    if not locale or locale == DEFAULT_LOCALE:
        return _DEFAULT_KEY
    return locale


class LocalizableOwner(Protocol):
    def get_locale(self) -> str: ...


class LocalizableString:
    """Per-locale texts with a change hook."""

    def __init__(
        self,
        owner: LocalizableOwner | None,
        use_markdown: bool = False,
        name: str | None = None,
        localization_name: str | None = None,
    ) -> None:
        self.owner = owner
        self.use_markdown = use_markdown
        self.name = name
        self.localization_name = localization_name
        self.searched_text: str | None = None
        self.on_str_changed: Callable[[str, str], None] | None = None
        self._values: dict[str, str] = {}
        self._rendered = self._calc_text()

    @property
    def locale(self) -> str:
        return self.owner.get_locale() if self.owner is not None else ""

    @property
    def text(self) -> str:
        return self._calc_text()

    @text.setter
    def text(self, value: str) -> None:
        self.set_locale_text(self.locale, value)

    def get_locale_text(self, locale: str) -> str:
        return self._values.get(_key(locale), "")

    def set_locale_text(self, locale: str, value: str | None) -> None:
        key = _key(locale)
        if self._values.get(key, "") == (value or ""):
            return
        if value:
            self._values[key] = value
        else:
            self._values.pop(key, None)
        self.str_changed()

    def get_locales(self) -> list[str]:
        return [key for key in self._values if key != _DEFAULT_KEY]

    @property
    def is_empty(self) -> bool:
        return not self._values

    def str_changed(self) -> None:
        """Recompute the rendered text and report it if it differs."""
        old = self._rendered
        self._rendered = self._calc_text()
        if old != self._rendered and self.on_str_changed is not None:
            self.on_str_changed(old, self._rendered)

    def set_find_text(self, text: str) -> bool:
        """Mark the string as a search hit if it contains text (case-insensitive)."""
        found = bool(text) and text.lower() in self.text.lower()
        self.searched_text = text if found else None
        return found

    def get_json(self) -> str | dict[str, str] | None:
        """A plain string when only the default text is set, else locale -> text."""
        if not self._values:
            return None
        if list(self._values) == [_DEFAULT_KEY]:
            return self._values[_DEFAULT_KEY]
        return dict(self._values)

    def set_json(self, value: str | dict[str, str] | None) -> None:
        if isinstance(value, dict):
            self._values = {_key(key): text for key, text in value.items() if text}
        else:
            self._values = {_DEFAULT_KEY: value} if value else {}
        self.str_changed()

    def _calc_text(self) -> str:
        locale = self.locale
        if locale and locale != DEFAULT_LOCALE and locale in self._values:
            return self._values[locale]
        if _DEFAULT_KEY in self._values:
            return self._values[_DEFAULT_KEY]
        if self.localization_name:
            return get_string(self.localization_name, locale)
        return ""

    def __repr__(self) -> str:
        return f"LocalizableString({self.name!r}, {self.text!r})"
