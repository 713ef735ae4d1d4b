import datetime
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytz
from jinja2 import Environment, FileSystemLoader, select_autoescape

from pointscalc.errors import PersistenceError
from pointscalc.logger import get_logger
from pointscalc.models import RankedItem
from pointscalc.store import CatalogStore

logger = get_logger(__name__)

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
# Item and category names are raw user text; autoescape neutralizes markup in them
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

DEFAULT_THEME = os.getenv("POINTS_THEME", "dark").strip().lower()
if DEFAULT_THEME not in ("light", "dark"):
    DEFAULT_THEME = "dark"

THEMES = {
    "light": {
        "page_bg": "#f5f5f5",
        "card_bg": "#ffffff",
        "card_border": "#e0e0e0",
        "text_primary": "#202124",
        "text_secondary": "#555",
        "text_muted": "#999",
        "accent": "#1a73e8",
        "best_deal": "#2e7d32",
    },
    "dark": {
        "page_bg": "#121212",
        "card_bg": "#1E1E1E",
        "card_border": "#333333",
        "text_primary": "#F1F1F1",
        "text_secondary": "#BBBBBB",
        "text_muted": "#777777",
        "accent": "#8AB4F8",
        "best_deal": "#4CAF50",
    },
}


def _money(value: float, places: int = 2) -> str:
    return f"${value:.{places}f}"


def _points_str(points: float) -> str:
    if float(points).is_integer():
        return str(int(points))
    return str(points)


def _card_data(ranked: List[RankedItem]) -> List[Dict[str, Any]]:
    return [
        {
            "item_id": r.item.item_id,
            "index": r.index,
            "name": r.item.name,
            "points_str": _points_str(r.item.points),
            "price_str": _money(r.item.price),
            "value_str": _money(r.value_per_point, 4),
            "best_deal": r.best_deal,
        }
        for r in ranked
    ]


def _last_saved(store: CatalogStore) -> Optional[str]:
    try:
        return store.storage.updated_at(store.key)
    except PersistenceError as e:
        logger.warning("Could not read last-saved time: %s", e)
        return None


def _context(store: CatalogStore, category: Optional[str]) -> Dict[str, Any]:
    if category is None:
        category = store.active_category
    else:
        category = category.strip()
    categories = store.list_categories()

    if category is None or category not in categories:
        empty_state = "welcome"
    elif not store.list_items(category):
        empty_state = "no_items"
    else:
        empty_state = None

    return {
        "category": category,
        "tabs": [{"name": c, "active": c == category} for c in categories],
        "cards": _card_data(store.ranked(category)) if empty_state is None else [],
        "empty_state": empty_state,
        "generated_at": datetime.datetime.now(tz=pytz.UTC).strftime("%Y-%m-%d %H:%M UTC"),
        "last_saved": _last_saved(store),
    }


def build_html_page(
    store: CatalogStore,
    category: Optional[str] = None,
    theme: Optional[str] = None,
) -> str:
    """
    Render the tab strip and the ranked cards of one category.
    category defaults to the store's active category.
    """
    theme = (theme or DEFAULT_THEME).strip().lower()
    if theme not in THEMES:
        logger.warning("Unknown theme '%s'; using dark.", theme)
        theme = "dark"

    template = env.get_template("catalog.html")
    ctx = _context(store, category)
    ctx["title"] = "Points Calculator"
    ctx["theme"] = theme
    ctx["colors"] = THEMES[theme]

    return template.render(**ctx)


def build_plaintext_listing(store: CatalogStore, category: Optional[str] = None) -> str:
    template = env.get_template("catalog.txt")
    return template.render(**_context(store, category))
