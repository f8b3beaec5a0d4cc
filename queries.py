"""
Product list filtering, sorting and pagination.

build_product_filter() and resolve_sort() are pure; fetch_product_page()
runs them against the product collection.
"""

import math
import re
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection

SortSpec = List[Tuple[str, int]]

DEFAULT_SORT = "newest"

SORT_OPTIONS: Dict[str, Tuple[str, int]] = {
    "price-asc": ("price", ASCENDING),
    "price-desc": ("price", DESCENDING),
    "newest": ("created_at", DESCENDING),
    "oldest": ("created_at", ASCENDING),
    "rating-desc": ("rating", DESCENDING),
    "rating-asc": ("rating", ASCENDING),
}


def build_product_filter(
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    min_rating: Optional[float] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if category:
        query["category"] = category.lower()
    price_filter: Dict[str, Any] = {}
    if min_price is not None:
        price_filter["$gte"] = float(min_price)
    if max_price is not None:
        price_filter["$lte"] = float(max_price)
    if price_filter:
        query["price"] = price_filter
    if min_rating is not None:
        query["rating"] = {"$gte": float(min_rating)}
    if search:
        # Plain substring match: regex metacharacters in the search text are literal
        pattern = re.escape(search)
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    return query


def resolve_sort(sort: Optional[str]) -> SortSpec:
    """Map a sort key to a Mongo sort spec; unknown keys fall back to newest first."""
    field, direction = SORT_OPTIONS.get(sort or DEFAULT_SORT, SORT_OPTIONS[DEFAULT_SORT])
    # _id keeps the order stable across pages when the sort field ties
    return [(field, direction), ("_id", direction)]


def page_bounds(page: int, limit: int) -> Tuple[int, int]:
    return (page - 1) * limit, limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def fetch_product_page(
    collection: Collection,
    query: Dict[str, Any],
    sort: SortSpec,
    page: int = 1,
    limit: int = 10,
) -> Dict[str, Any]:
    skip, take = page_bounds(page, limit)
    docs = list(collection.find(query).sort(sort).skip(skip).limit(take))
    total = collection.count_documents(query)
    return {
        "count": len(docs),
        "total": total,
        "total_pages": total_pages(total, limit),
        "current_page": page,
        "docs": docs,
    }
