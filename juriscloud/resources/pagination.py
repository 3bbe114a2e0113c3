import math
from typing import List, Tuple

WINDOW_SIZE = 5


def total_pages(total_count: int, page_size: int) -> int:
    return max(1, math.ceil(total_count / page_size))


def page_range(page: int, page_size: int) -> Tuple[int, int]:
    """Inclusive row window ``(start, end)`` of a 1-indexed page."""
    start = (page - 1) * page_size
    return start, start + page_size - 1


def page_window(page: int, pages: int, size: int = WINDOW_SIZE) -> List[int]:
    """Page numbers offered by the pager.

    All pages when there are at most ``size``; otherwise the first ``size``
    near the start, the last ``size`` near the end, and the current page
    centred in between.
    """
    if pages <= size:
        return list(range(1, pages + 1))
    half = size // 2
    if page <= half + 1:
        return list(range(1, size + 1))
    if page >= pages - half:
        return list(range(pages - size + 1, pages + 1))
    return list(range(page - half, page + half + 1))
