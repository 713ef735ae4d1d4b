# pointscalc/models.py
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class Item:
    """
    A redemption option: what it is, how many points it costs and
    the cash price those points stand in for.
    item_id is issued by the Store and never persisted; 0 means "not issued yet".
    """
    name: str
    points: float
    price: float
    item_id: int = field(default=0, compare=False)

    @property
    def value_per_point(self) -> float:
        return self.price / self.points

    def to_record(self) -> Dict[str, Any]:
        return {"name": self.name, "points": self.points, "price": self.price}


@dataclass
class RankedItem:
    item: Item
    index: int
    value_per_point: float
    best_deal: bool = False
