# pointscalc/ranking.py
from typing import List, Sequence

from .models import Item, RankedItem


def rank_items(items: Sequence[Item]) -> List[RankedItem]:
    """
    Rank items by value per point (price / points), best first.
    - items: a category's item sequence, in insertion order
    Returns:
      RankedItems sorted descending by value_per_point. Ties keep insertion
      order. Every item whose ratio equals the maximum exactly is flagged
      best_deal.
    """
    ranked = [
        RankedItem(item=it, index=idx, value_per_point=it.value_per_point)
        for idx, it in enumerate(items)
    ]
    # sorted() is stable, so equal ratios stay in insertion order
    ranked = sorted(ranked, key=lambda r: r.value_per_point, reverse=True)

    if not ranked:
        return ranked

    best = ranked[0].value_per_point
    for r in ranked:
        r.best_deal = r.value_per_point == best

    return ranked


def best_deals(items: Sequence[Item]) -> List[RankedItem]:
    return [r for r in rank_items(items) if r.best_deal]
