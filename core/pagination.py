"""
Offset-Pagination für Listen-Endpunkte.

Zwei Varianten:

- ``count_page``: Seite per skip/limit, ``hasMore`` über die Gesamtanzahl
  (``page * PAGE_SIZE < total``). Die Anzahl wird pro Request neu gezählt.
- ``window_page``: Fenster ``[skip, PAGE_SIZE + 1]``; das zusätzliche
  Element zeigt nur an, ob es weitere Einträge gibt, und wird verworfen.
"""
from dataclasses import dataclass
from typing import Any, Sequence

PAGE_SIZE = 20
# OFFSET muss in einen 64-Bit-Integer passen
MAX_PAGE = 1_000_000_000


class InvalidPage(ValueError):
    pass


@dataclass(frozen=True)
class Page:
    items: list[Any]
    page: int
    has_more: bool

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.has_more else None


def parse_page(raw) -> int:
    """``?page=`` muss eine ganze Zahl zwischen 1 und ``MAX_PAGE`` sein."""
    if raw is None:
        raise InvalidPage("missing page")
    s = str(raw).strip()
    if not (s.isascii() and s.isdigit()):
        raise InvalidPage(f"not a number: {raw!r}")
    page = int(s)
    if not 1 <= page <= MAX_PAGE:
        raise InvalidPage(f"page out of range: {page}")
    return page


def skip_for(page: int, page_size: int = PAGE_SIZE) -> int:
    return (page - 1) * page_size


def window_limit(page_size: int = PAGE_SIZE) -> int:
    return page_size + 1


def count_page(items: Sequence[Any], page: int, total: int, page_size: int = PAGE_SIZE) -> Page:
    return Page(items=list(items), page=page, has_more=page * page_size < total)


def window_page(window: Sequence[Any], page: int, page_size: int = PAGE_SIZE) -> Page:
    window = list(window)
    return Page(items=window[:page_size], page=page, has_more=len(window) > page_size)
