"""Locale helpers.

Locales are stored as ``language`` or ``language_COUNTRY`` strings
("en", "en_GB", "fr"). A row in a bare language locale is valid for
every country variant of that language.
"""


def normalize_locale(locale: str) -> str:
    """Normalize "en-gb" / "EN_gb" style input to "en_GB"."""
    parts = locale.strip().replace("-", "_").split("_")
    language = parts[0].lower()
    if len(parts) == 1 or not parts[1]:
        return language
    return f"{language}_{parts[1].upper()}"


def locale_language(locale: str) -> str:
    """Return the language part of a locale ("en_GB" -> "en")."""
    return normalize_locale(locale).split("_")[0]


def locale_candidates(locale: str) -> list[str]:
    """Stored locales that are valid when searching in ``locale``."""
    normalized = normalize_locale(locale)
    language = locale_language(normalized)
    if language == normalized:
        return [normalized]
    return [normalized, language]
