# 📄 File: app/modules/plant_analysis/domain/services/plant_names.py
# 🧭 Purpose (Layman Explanation):
# Translates a plant's name into the user's language, so a Spanish speaker sees "Sábila"
# instead of "Aloe vera".
# 🧪 Purpose (Technical Summary):
# Static localisation table with species-then-genus lookup and language fallback
# (preferred -> English -> scientific name).
# 🔗 Dependencies:
# None beyond the standard library
# 🔄 Connected Modules / Calls From:
# Species identifier

from dataclasses import dataclass, field
from typing import Dict, List

DEFAULT_LANGUAGE = "en"

SUPPORTED_LANGUAGES: Dict[str, str] = {
    "en": "English",
    "es": "Español",
    "fr": "Français",
    "de": "Deutsch",
    "it": "Italiano",
    "pt": "Português",
    "zh": "中文",
    "ja": "日本語",
    "ko": "한국어",
    "ar": "العربية",
    "hi": "हिन्दी",
    "ru": "Русский",
}

# Keys are scientific names or genera
NAME_TABLE: Dict[str, Dict[str, str]] = {
    "Rosa": {
        "en": "Rose", "es": "Rosa", "fr": "Rose", "de": "Rose",
        "it": "Rosa", "pt": "Rosa", "zh": "玫瑰", "ja": "バラ",
        "ko": "장미", "ar": "وردة", "hi": "गुलाब", "ru": "Роза",
    },
    "Aloe vera": {
        "en": "Aloe Vera", "es": "Sábila", "fr": "Aloès", "de": "Echte Aloe",
        "it": "Aloe Vera", "pt": "Babosa", "zh": "芦荟", "ja": "アロエベラ",
        "ko": "알로에 베라", "ar": "الألوة فيرا", "hi": "घृतकुमारी", "ru": "Алоэ вера",
    },
}


@dataclass
class LocalizedNames:
    primary: str
    scientific: str
    alternatives: Dict[str, str] = field(default_factory=dict)


class PlantNameLocalizer:
    """Resolves display names for a scientific name in a preferred language."""

    def __init__(self, table: Dict[str, Dict[str, str]] = None):
        self.table = {k.lower(): v for k, v in (table or NAME_TABLE).items()}

    def _entry(self, scientific_name: str) -> Dict[str, str]:
        key = " ".join(scientific_name.split()).lower()
        if key in self.table:
            return self.table[key]
        genus = key.split(" ")[0] if key else ""
        return self.table.get(genus, {})

    def localize(self, scientific_name: str, language: str = DEFAULT_LANGUAGE) -> LocalizedNames:
        """
        Args:
            scientific_name: Binomial or genus
            language: Preferred language code

        Returns:
            LocalizedNames; primary falls back to English, then to the scientific name
        """
        names = self._entry(scientific_name)
        if not names:
            return LocalizedNames(primary=scientific_name, scientific=scientific_name)

        primary = names.get(language) or names.get(DEFAULT_LANGUAGE) or scientific_name
        alternatives = {
            lang: name for lang, name in names.items()
            if lang != language and name != primary
        }
        return LocalizedNames(primary=primary, scientific=scientific_name, alternatives=alternatives)

    @staticmethod
    def supported_languages() -> List[str]:
        return list(SUPPORTED_LANGUAGES)
