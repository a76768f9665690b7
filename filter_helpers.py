from typing import Optional

VALID_SORTS = {"name", "quantity", "category", "brand", "updated_at"}
VALID_ORDERS = {"asc", "desc"}


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if value == "":
        return None
    return value


def normalize_sort(sort: str) -> str:
    if sort in VALID_SORTS:
        return sort
    return "name"


def normalize_order(order: str) -> str:
    if order in VALID_ORDERS:
        return order
    return "asc"


def normalize_limit(limit: int, *, min_value: int = 1, max_value: int = 500) -> int:
    if limit < min_value:
        return min_value
    if limit > max_value:
        return max_value
    return limit


def normalize_offset(offset: int) -> int:
    if offset < 0:
        return 0
    return offset
