"""
Page plans for listings (home, tag and author pages).
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

# A page size of -1 means "all items on one page"
UNLIMITED = -1
UNLIMITED_PAGE_SIZE = 999


@dataclass(frozen=True)
class PageSlot:
    number: int
    offset: int
    item_count: int
    next_page: Optional[int]
    previous_page: Optional[int]
    is_first: bool
    is_last: bool


@dataclass(frozen=True)
class PagePlan:
    page_size: int
    total_items: int
    total_pages: int
    paginated: bool
    pages: Tuple[PageSlot, ...]

    def __iter__(self):
        return iter(self.pages)

    def __len__(self):
        return len(self.pages)


def effective_page_size(page_size: int) -> int:
    if page_size <= 0:
        return UNLIMITED_PAGE_SIZE
    return page_size


def plan(total_items: int, page_size: int) -> PagePlan:
    """
    Lay out ``total_items`` over pages of ``page_size`` items.

    A listing that fits on one page gets a single, unpaginated slot (also when
    it is empty). Otherwise pages start at consecutive offsets and are numbered
    from 1.
    """
    if total_items < 0:
        raise ValueError("total_items must not be negative")

    size = effective_page_size(page_size)

    if total_items <= size:
        only = PageSlot(
            number=1,
            offset=0,
            item_count=total_items,
            next_page=None,
            previous_page=None,
            is_first=True,
            is_last=True,
        )
        return PagePlan(size, total_items, 1, False, (only,))

    total_pages = (total_items + size - 1) // size
    pages = []
    for offset in range(0, total_items, size):
        current = offset // size + 1
        pages.append(PageSlot(
            number=current,
            offset=offset,
            item_count=min(size, total_items - offset),
            next_page=current + 1 if current < total_pages else None,
            previous_page=current - 1 if current > 1 else None,
            is_first=current == 1,
            is_last=current == total_pages,
        ))

    return PagePlan(size, total_items, total_pages, True, tuple(pages))


def pagination_links(current_page: int, total_pages: int) -> List[Union[int, str]]:
    """
    Returns a list of page numbers (or ellipses) to display in pagination.
    Always shows page 1 and total_pages.
    Shows two pages before and after the current page.
    Inserts '...' when there is a gap.
    """
    delta = 2  # how many pages to show before and after current page
    links = [1]

    start = max(current_page - delta, 2)
    end = min(current_page + delta, total_pages - 1)

    if start > 2:
        links.append('...')

    links.extend(range(start, end + 1))

    if end < total_pages - 1:
        links.append('...')

    if total_pages > 1:
        links.append(total_pages)

    return links
