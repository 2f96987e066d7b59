from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_PROJECT_DIR = Path(__file__).resolve().parent.parent


def _languages_from_env() -> tuple[str, ...]:
    raw = os.getenv("COOKBOOK_SUPPORTED_LANGUAGES", "no,pb")
    return tuple(lang.strip() for lang in raw.split(",") if lang.strip())


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path = Path(os.getenv("COOKBOOK_DATA_DIR", str(_PROJECT_DIR / "data")))
    ui_template: str = "ui-{lang}.json"
    recipes_template: str = "recipes-{lang}.json"
    store_path: Path = Path(
        os.getenv("COOKBOOK_STORE_PATH", str(_PROJECT_DIR / "data" / "user-data.json"))
    )
    default_language: str = os.getenv("COOKBOOK_DEFAULT_LANGUAGE", "no")
    supported_languages: tuple[str, ...] = field(default_factory=_languages_from_env)
    base_url: str = os.getenv(
        "COOKBOOK_BASE_URL", "https://kkollsga.github.io/farmors-kokebok/"
    )
    collation_locale: str = os.getenv("COOKBOOK_COLLATION_LOCALE", "nb_NO.UTF-8")
    view_debounce_seconds: float = 10.0
    recommendation_debounce_seconds: float = 10.0
    holiday_category_key: str = "julekaker"
    butchery_category_key: str = "slakteveiledning"

    def ui_path(self, language: str) -> Path:
        return self.data_dir / self.ui_template.format(lang=language)

    def recipes_path(self, language: str) -> Path:
        return self.data_dir / self.recipes_template.format(lang=language)


DEFAULT_APP_CONFIG = AppConfig()
