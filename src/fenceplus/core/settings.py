"""Code block enhancement settings and their persisted (camelCase) form."""

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TITLE_BACKGROUND_COLOR = "#00000020"
DEFAULT_HIGHLIGHT_COLOR = "#2d82cc20"

# persisted key -> attribute
SETTING_KEYS = {
    "excludeLangs": "exclude_langs",
    "substitutionTokenForSpace": "substitution_token_for_space",
    "titleBackgroundColor": "title_background_color",
    "titleFontColor": "title_font_color",
    "highLightColor": "highlight_color",
    "showLineNumber": "show_line_number",
    "showDividingLine": "show_dividing_line",
    "showLangNameInTopRight": "show_lang_name_in_top_right",
}

_BOOL_KEYS = {"show_line_number", "show_dividing_line", "show_lang_name_in_top_right"}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(raw)


def _split_langs(value: Any) -> list[str]:
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return []


@dataclass
class Settings:
    exclude_langs: list[str] = field(default_factory=list)
    substitution_token_for_space: str | None = None
    title_background_color: str = DEFAULT_TITLE_BACKGROUND_COLOR
    title_font_color: str | None = None
    highlight_color: str = DEFAULT_HIGHLIGHT_COLOR
    show_line_number: bool = True
    show_dividing_line: bool = False
    show_lang_name_in_top_right: bool = True

    @classmethod
    def from_data(cls, data: dict[str, Any] | None, base: "Settings | None" = None) -> "Settings":
        """
        Overlay persisted data on ``base`` (or the defaults).

        Unknown keys are ignored. Attribute names are accepted as well as
        the persisted camelCase keys.
        """
        settings = replace(base) if base is not None else cls()
        settings.exclude_langs = list(settings.exclude_langs)
        attrs = {f.name for f in fields(cls)}
        for key, value in (data or {}).items():
            attr = SETTING_KEYS.get(key, key)
            if attr not in attrs:
                continue
            if attr == "exclude_langs":
                value = _split_langs(value)
            elif attr in _BOOL_KEYS and isinstance(value, str):
                try:
                    value = _parse_bool(value)
                except ValueError:
                    logger.warning("Ignoring %s: expected a boolean, got %r", key, value)
                    continue
            elif attr in _BOOL_KEYS:
                value = bool(value)
            elif value is not None:
                value = str(value)
            setattr(settings, attr, value)
        return settings

    def to_data(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for key, attr in SETTING_KEYS.items()}

    def with_value(self, key: str, raw: str) -> "Settings":
        """
        Return a copy with one setting parsed from its text form.

        Raises:
            KeyError: unknown setting
            ValueError: value not valid for a boolean setting
        """
        attr = SETTING_KEYS.get(key, key)
        if attr not in {f.name for f in fields(self)}:
            raise KeyError(key)
        value: Any
        if attr in _BOOL_KEYS:
            try:
                value = _parse_bool(raw)
            except ValueError:
                raise ValueError(f"{key} expects a boolean, got {raw!r}") from None
        elif attr == "exclude_langs":
            value = _split_langs(raw)
        else:
            value = raw or None
        if attr in ("title_background_color", "highlight_color") and value is None:
            value = getattr(Settings(), attr)
        updated = replace(self)
        setattr(updated, attr, value)
        return updated
