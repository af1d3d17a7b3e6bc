"""
History Query Models

A HistoryQuery is the full state of the history view: filters, sort
and pagination. The query engine turns it into a HistoryPage
deterministically.

The helper methods reproduce the view's state rules. Changing a filter,
the page size or the sort resets to page 1.
"""

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ledgerbook.models.transaction import (
    ExpenseCategory,
    Transaction,
    TransactionKind,
)


class SortKey(str, Enum):
    """Columns the history can be sorted by."""
    TIMESTAMP = "timestamp"
    KIND = "kind"
    ACCOUNT_ID = "account_id"
    AMOUNT = "amount"
    CURRENCY = "currency"
    BALANCE_AFTER = "balance_after"


class HistoryQuery(BaseModel):
    """
    Filter + sort + pagination state for the transaction history.

    sort_by is a plain string on purpose: unknown keys are not an error,
    the engine falls back to newest-first.
    """

    # Filters
    date_from: Optional[date] = Field(
        default=None,
        description="Keep records on or after this calendar date"
    )
    date_to: Optional[date] = Field(
        default=None,
        description="Keep records on or before this calendar date"
    )
    kind: Optional[TransactionKind] = None
    category: Optional[ExpenseCategory] = None
    search: Optional[str] = Field(
        default=None,
        description="Free text matched against account id, currency, type and note"
    )

    # Sorting
    sort_by: str = SortKey.TIMESTAMP.value
    descending: bool = True

    # Pagination
    page: int = 1
    page_size: int = Field(
        default=10,
        ge=1,
        le=500,
    )

    def with_filters(self, **changes: Any) -> "HistoryQuery":
        """Return a copy with updated filters, back on page 1."""
        return self.model_copy(update={**changes, "page": 1})

    def with_page_size(self, page_size: int) -> "HistoryQuery":
        """Return a copy with a new page size; non-positive sizes are ignored."""
        if page_size <= 0:
            return self
        return self.model_copy(update={"page_size": page_size, "page": 1})

    def with_page(self, page: int) -> "HistoryQuery":
        return self.model_copy(update={"page": page})

    def toggle_sort(self, key: str) -> "HistoryQuery":
        """
        Column-header click behaviour.

        Same column flips direction. A new column starts descending only
        for the timestamp, ascending for everything else.
        """
        key = key.value if isinstance(key, SortKey) else key
        if key == self.sort_by:
            descending = not self.descending
        else:
            descending = key == SortKey.TIMESTAMP.value
        return self.model_copy(
            update={"sort_by": key, "descending": descending, "page": 1}
        )

    def cleared(self) -> "HistoryQuery":
        """Drop every filter and return to page 1. Sort and page size stay."""
        return self.model_copy(update={
            "date_from": None,
            "date_to": None,
            "kind": None,
            "category": None,
            "search": None,
            "page": 1,
        })

    def sort_indicator(self, key: str) -> str:
        key = key.value if isinstance(key, SortKey) else key
        if key != self.sort_by:
            return ""
        return "▼" if self.descending else "▲"


class HistoryPage(BaseModel):
    """
    One page of query results.

    page is the clamped page actually returned, which may differ from
    the requested one.
    """

    items: list[Transaction] = Field(default_factory=list)
    total_count: int = Field(
        ...,
        ge=0,
        description="Number of records matching the filters"
    )
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=1)
    query_description: str = ""

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0
