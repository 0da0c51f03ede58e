"""Category and subcategory key → display-name lookups."""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

CATEGORIES_PATH = Path(__file__).resolve().parents[2] / "data" / "service-categories.json"


def format_category(raw: dict) -> dict:
    """Normalise one raw category record to ``{key, name, subCategories}``."""
    return {
        "key": raw["key"],
        "name": raw.get("name") or raw["key"],
        "subCategories": [
            {"key": sub["key"], "name": sub.get("name") or sub["key"]} for sub in raw.get("subCategories") or []
        ],
    }


@lru_cache(maxsize=4)
def load_categories(path: str = str(CATEGORIES_PATH)) -> Tuple[dict, ...]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load service categories from {path}: {e}")
        return ()
    return tuple(format_category(item) for item in raw if isinstance(item, dict) and item.get("key"))


def build_lookups(categories) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Return ``(category_key_to_name, sub_category_key_to_name)``."""
    category_names: Dict[str, str] = {}
    sub_category_names: Dict[str, str] = {}
    for cat in categories:
        category_names[cat["key"]] = cat["name"]
        for sub in cat["subCategories"]:
            sub_category_names[sub["key"]] = sub["name"]
    return category_names, sub_category_names


def category_name(key: str, categories=None) -> str:
    names, _ = build_lookups(load_categories() if categories is None else categories)
    return names.get(key, key)


def sub_category_name(key: str, categories=None) -> str:
    _, names = build_lookups(load_categories() if categories is None else categories)
    return names.get(key, key)
