import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ytmerge.config.settings import config

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"


class I18n:
    """Message catalog keyed by dotted paths, e.g. "error.invalid_url" """

    def __init__(self, locales_dir: Path = LOCALES_DIR, default_locale: str = "en"):
        self.default_locale = default_locale
        self.catalogs: Dict[str, Dict[str, Any]] = {}
        self.load(locales_dir)

    def load(self, locales_dir: Path) -> None:
        if not locales_dir.is_dir():
            logger.warning(f"Locales directory not found at {locales_dir}")
            return

        for path in sorted(locales_dir.glob("*.json")):
            try:
                self.catalogs[path.stem] = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.error(f"Error loading locale {path.stem}: {e}")

    def lookup(self, key: str, locale: str) -> Optional[str]:
        node: Any = self.catalogs.get(locale)
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None

    def get(self, key: str, locale: Optional[str] = None, **kwargs) -> str:
        """Translated message; falls back to the default locale, then to the key itself"""
        template = None
        for candidate in (locale, self.default_locale, "en"):
            if candidate:
                template = self.lookup(key, candidate)
            if template is not None:
                break

        if template is None:
            return key
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            return template


i18n = I18n(default_locale=config.i18n.default_locale)
