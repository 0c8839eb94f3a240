"""Page arithmetic shared by the listing services."""
import math


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit
