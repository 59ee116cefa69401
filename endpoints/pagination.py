from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TypedDict

# Leading-integer parse: "2.9" -> 2, "12abc" -> 12, "abc" -> no match.
LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

DEFAULT_PAGE = 1


class PaginationInfo(TypedDict):
    page: int
    limit: int
    total: int
    totalPages: int


def parse_int_param(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    m = LEADING_INT_RE.match(raw)
    if m is None:
        return default
    return int(m.group(1))


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query(
        cls,
        page: str | None,
        limit: str | None,
        *,
        default_limit: int,
        max_limit: int = 0,
    ) -> "PageRequest":
        """
        Resolve raw query values into effective ones.

        Missing / non-numeric values fall back to defaults; anything below 1
        is clamped to 1. `max_limit` of 0 means uncapped.
        """
        p = max(parse_int_param(page, DEFAULT_PAGE), 1)
        n = max(parse_int_param(limit, default_limit), 1)
        if max_limit > 0:
            n = min(n, max_limit)
        return cls(page=p, limit=n)

    def info(self, total: int) -> PaginationInfo:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "totalPages": total_pages(total, self.limit),
        }


def total_pages(total: int, limit: int) -> int:
    # An empty table still reports one (empty) page.
    return max(math.ceil(total / limit), 1)
