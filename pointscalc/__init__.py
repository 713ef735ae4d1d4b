# pointscalc/__init__.py
from .errors import (
    PersistenceError,
    PointsCalcError,
    UnknownCategoryError,
    ValidationError,
)
from .models import Item, RankedItem
from .ranking import best_deals, rank_items
from .storage import MemoryBlobStorage, SqliteBlobStorage
from .store import CatalogStore

__all__ = [
    "CatalogStore",
    "Item",
    "MemoryBlobStorage",
    "PersistenceError",
    "PointsCalcError",
    "RankedItem",
    "SqliteBlobStorage",
    "UnknownCategoryError",
    "ValidationError",
    "best_deals",
    "rank_items",
]
