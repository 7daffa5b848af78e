#!/usr/bin/env python3
"""
Pagination models shared by list queries
"""
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from ecod_curation.exceptions import ValidationError

T = TypeVar('T')


@dataclass(frozen=True)
class PageRequest:
    """A 1-based page of fixed size"""
    page: int = 1
    page_size: int = 20
    max_page_size: int = 500

    def __post_init__(self):
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise ValidationError(f"Page must be a positive integer, got {self.page!r}")
        if (isinstance(self.page_size, bool) or not isinstance(self.page_size, int)
                or not 1 <= self.page_size <= self.max_page_size):
            raise ValidationError(
                f"Page size must be between 1 and {self.max_page_size}, got {self.page_size!r}"
            )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    @classmethod
    def from_config(cls, page: Optional[int], page_size: Optional[int],
                    pagination_config: Optional[Dict[str, Any]] = None) -> 'PageRequest':
        """Build a request, filling gaps from the pagination config section"""
        cfg = pagination_config or {}
        return cls(
            page=page if page is not None else 1,
            page_size=page_size if page_size is not None else cfg.get('default_page_size', 20),
            max_page_size=cfg.get('max_page_size', 500)
        )


@dataclass
class Page(Generic[T]):
    """One page of results with the total count across all pages"""
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self, item_serializer: Optional[Callable[[T], Any]] = None,
                key: str = 'items') -> Dict[str, Any]:
        serialize = item_serializer or _default_serializer
        return {
            key: [serialize(item) for item in self.items],
            'total': self.total,
            'page': self.page,
            'page_size': self.page_size,
            'total_pages': self.total_pages,
        }


def _default_serializer(item: Any) -> Any:
    return item.to_dict() if hasattr(item, 'to_dict') else item
