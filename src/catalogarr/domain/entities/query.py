"""Keys identifying cacheable aggregation queries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_query(query: str) -> str:
    return _WHITESPACE_RE.sub(" ", query).strip().lower()


class QueryKind(str, Enum):
    HOME = "home"
    SEARCH = "search"


@dataclass(frozen=True)
class QueryKey:
    kind: QueryKind
    param: str = ""

    @classmethod
    def home(cls) -> QueryKey:
        return cls(QueryKind.HOME)

    @classmethod
    def search(cls, query: str) -> QueryKey:
        return cls(QueryKind.SEARCH, normalize_query(query))

    @property
    def storage_key(self) -> str:
        return f"rows:{self.kind.value}:{self.param}"
