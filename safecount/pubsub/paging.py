from __future__ import annotations

from typing import Generic, Iterator, List, Optional, Sequence, TypeVar

T = TypeVar("T")


class PagedResponse(Generic[T]):
    """Result of a list call, split into fixed-size pages.

    The items are captured when the response is built, so iterating it
    later does not observe creates or deletes that happened in between.
    """

    def __init__(self, items: Sequence[T], page_size: int):
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.page_size = page_size
        self.pages: List[List[T]] = [
            list(items[i:i + page_size]) for i in range(0, len(items), page_size)
        ] or [[]]

    @property
    def next_page_token(self) -> Optional[str]:
        """Token for the page after the first one, None if there is only one"""
        return "1" if len(self.pages) > 1 else None

    def page(self, token: Optional[str] = None) -> List[T]:
        index = int(token) if token else 0
        if index < 0 or index >= len(self.pages):
            raise IndexError(f"No page for token {token!r}")
        return self.pages[index]

    def iterate_all(self) -> Iterator[T]:
        for page in self.pages:
            yield from page

    def __iter__(self) -> Iterator[T]:
        return self.iterate_all()
