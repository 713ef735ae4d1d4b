# pointscalc/store.py
import json
import math
import os
from typing import Any, Dict, List, Optional

from .errors import PersistenceError, UnknownCategoryError, ValidationError
from .logger import get_logger
from .models import Item, RankedItem
from .ranking import rank_items

logger = get_logger(__name__)

STORAGE_KEY = os.getenv("POINTS_STORAGE_KEY", "points-calculator-data")


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _category_key(name: Any) -> Any:
    return name.strip() if isinstance(name, str) else name


def clean_category_name(name: Any) -> str:
    cleaned = name.strip() if isinstance(name, str) else ""
    if not cleaned:
        raise ValidationError("Please enter a category name.")
    return cleaned


def validate_item(item: Item) -> Item:
    """
    Return a trimmed copy of item, or raise ValidationError.
    points and price must be finite numbers greater than zero.
    """
    name = item.name.strip() if isinstance(item.name, str) else ""
    if not name:
        raise ValidationError("Item name must not be empty.")

    for label, value in (("points", item.points), ("price", item.price)):
        if not _is_finite_number(value):
            raise ValidationError(f"Item {label} must be a number, got {value!r}.")
        if value <= 0:
            raise ValidationError(f"Item {label} must be greater than zero, got {value!r}.")

    return Item(name=name, points=item.points, price=item.price)


def _item_from_record(record: Any) -> Optional[Item]:
    if not isinstance(record, dict):
        return None
    try:
        return validate_item(
            Item(
                name=record.get("name"),
                points=record.get("points"),
                price=record.get("price"),
            )
        )
    except ValidationError:
        return None


class CatalogStore:
    """
    Owns the category -> items catalog and the active category.

    Every mutating call validates first, then mutates, then saves the whole
    catalog. A PersistenceError from save() leaves the in-memory change in
    place. Callers re-render after each call; there are no callbacks.
    """

    def __init__(self, storage, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._catalog: Dict[str, List[Item]] = {}
        self._active: Optional[str] = None
        self._next_id = 1

    @classmethod
    def open(cls, storage, key: str = STORAGE_KEY) -> "CatalogStore":
        store = cls(storage, key)
        store.load()
        return store

    # --- selection ---

    @property
    def active_category(self) -> Optional[str]:
        return self._active

    def switch_category(self, name: str):
        name = _category_key(name)
        if name not in self._catalog:
            raise UnknownCategoryError(name)
        self._active = name

    def _restore_selection(self):
        if self._active in self._catalog:
            return
        self._active = next(iter(self._catalog), None)

    def _issue(self, item: Item) -> Item:
        item.item_id = self._next_id
        self._next_id += 1
        return item

    def _check_index(self, category: str, index: int) -> List[Item]:
        items = self._catalog.get(category)
        if items is None or not 0 <= index < len(items):
            size = len(items) if items is not None else 0
            raise IndexError(
                f"No item at position {index} in '{category}' ({size} items)."
            )
        return items

    # --- categories ---

    def list_categories(self) -> List[str]:
        return list(self._catalog)

    def create_category(self, name: str) -> str:
        name = clean_category_name(name)
        if name in self._catalog:
            logger.debug("Category '%s' already exists.", name)
            return name
        self._catalog[name] = []
        self._restore_selection()
        logger.info("Created category '%s'.", name)
        self.save()
        return name

    def delete_category(self, name: str) -> bool:
        name = _category_key(name)
        if name not in self._catalog:
            logger.warning("Delete requested for unknown category '%s'.", name)
            return False
        removed = self._catalog.pop(name)
        self._active = next(iter(self._catalog), None)
        logger.info("Deleted category '%s' with %d items.", name, len(removed))
        self.save()
        return True

    # --- items ---

    def list_items(self, category: str) -> List[Item]:
        return list(self._catalog.get(_category_key(category), []))

    def index_of(self, category: str, item_id: int) -> int:
        category = _category_key(category)
        for idx, it in enumerate(self._catalog.get(category, [])):
            if it.item_id == item_id:
                return idx
        raise IndexError(f"No item #{item_id} in '{category}'.")

    def add_item(self, category: str, item: Item) -> int:
        category = clean_category_name(category)
        new_item = self._issue(validate_item(item))
        items = self._catalog.setdefault(category, [])
        items.append(new_item)
        self._restore_selection()
        logger.info(
            "Added '%s' to '%s' (%s points, %.2f).",
            new_item.name, category, new_item.points, new_item.price,
        )
        self.save()
        return len(items) - 1

    def update_item(self, category: str, index: int, new_item: Item):
        category = _category_key(category)
        updated = validate_item(new_item)
        items = self._check_index(category, index)
        updated.item_id = items[index].item_id
        items[index] = updated
        logger.info("Updated item %d in '%s' to '%s'.", index, category, updated.name)
        self.save()

    def delete_item(self, category: str, index: int) -> Item:
        category = _category_key(category)
        items = self._check_index(category, index)
        removed = items.pop(index)
        if not items:
            del self._catalog[category]
            self._restore_selection()
            logger.info("Category '%s' is empty; removed it.", category)
        logger.info("Deleted '%s' from '%s'.", removed.name, category)
        self.save()
        return removed

    def reset(self):
        self._catalog = {}
        self._active = None
        logger.info("Catalog reset.")
        self.save()

    # --- ranking ---

    def ranked(self, category: Optional[str] = None) -> List[RankedItem]:
        if category is None:
            category = self._active
        if category is None:
            return []
        return rank_items(self._catalog.get(_category_key(category), []))

    # --- persistence ---

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            cat: [it.to_record() for it in items]
            for cat, items in self._catalog.items()
        }

    def save(self):
        blob = json.dumps(self.snapshot())
        self.storage.set(self.key, blob)

    def load(self):
        self._catalog = {}
        self._active = None

        try:
            raw = self.storage.get(self.key)
        except PersistenceError as e:
            logger.warning("Could not read saved catalog; starting empty: %s", e)
            raw = None

        if not raw:
            logger.info("No saved catalog under '%s'.", self.key)
            return

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(
                "Saved catalog under '%s' is not valid JSON; starting empty: %s",
                self.key, e,
            )
            return

        if not isinstance(data, dict):
            logger.warning(
                "Saved catalog under '%s' is a %s, expected an object; starting empty.",
                self.key, type(data).__name__,
            )
            return

        for category, records in data.items():
            if not isinstance(records, list):
                logger.warning("Skipping category '%s': items are not a list.", category)
                continue
            items = []
            for record in records:
                item = _item_from_record(record)
                if item is None:
                    logger.warning("Skipping malformed item in '%s': %r", category, record)
                    continue
                items.append(self._issue(item))
            if items or not records:
                self._catalog[category] = items

        self._restore_selection()
        logger.info("Loaded %d categories from '%s'.", len(self._catalog), self.key)
