"""
History Query Engine

DESIGN DECISION: The history view is a PURE function of
(transactions, query). No storage access, no side effects, and no
exceptions: an unknown sort key falls back to newest-first, unset
filters are skipped, and out-of-range pages are clamped.

Pipeline:
1. Date / type / category filters (AND)
2. Free-text search (OR across display account, currency, type, note)
3. Sort
4. Count
5. Slice the requested page
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional

from ledgerbook.models.history import HistoryPage, HistoryQuery, SortKey
from ledgerbook.models.transaction import Transaction


DEFAULT_PAGE_SIZE = 10


def total_pages(total_count: int, page_size: int) -> int:
    """Number of pages; never less than one, so empty results are "1 of 1"."""
    return max(1, math.ceil(total_count / page_size))


def clamp_page(page: int, pages: int) -> int:
    if page < 1:
        return 1
    if page > pages:
        return pages
    return page


def _ordinal(member: Enum) -> int:
    """Declaration order of an enum member, used for enum sort keys."""
    return list(type(member)).index(member)


def _as_date(value: Optional[date]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


class HistoryQueryEngine:
    """
    Runs a HistoryQuery over a transaction snapshot.

    GUARANTEES:
    - Deterministic: the same input always yields the same page
    - Never raises for any query state
    - total_count is the filtered count before pagination
    """

    def execute(
        self,
        transactions: Iterable[Transaction],
        query: HistoryQuery,
    ) -> HistoryPage:
        """Filter, search, sort and paginate."""
        matched = self.filter(transactions, query)
        ordered = self.sort(matched, query.sort_by, query.descending)

        page_size = query.page_size if query.page_size > 0 else DEFAULT_PAGE_SIZE
        total_count = len(ordered)
        pages = total_pages(total_count, page_size)
        page = clamp_page(query.page, pages)
        start = (page - 1) * page_size

        return HistoryPage(
            items=ordered[start:start + page_size],
            total_count=total_count,
            page=page,
            page_size=page_size,
            total_pages=pages,
            query_description=self.describe(query),
        )

    def filter(
        self,
        transactions: Iterable[Transaction],
        query: HistoryQuery,
    ) -> list[Transaction]:
        """Apply the conjunctive filters and the free-text search."""
        date_from = _as_date(query.date_from)
        date_to = _as_date(query.date_to)
        needle = (query.search or "").strip().lower()

        result = []
        for record in transactions:
            day = record.timestamp.date()
            if date_from and day < date_from:
                continue
            if date_to and day > date_to:
                continue
            if query.kind is not None and record.kind != query.kind:
                continue
            if query.category is not None and record.category != query.category:
                continue
            if needle and not self._matches_search(record, needle):
                continue
            result.append(record)
        return result

    def _matches_search(self, record: Transaction, needle: str) -> bool:
        haystacks = (
            str(record.display_account_id),
            record.currency.label,
            record.kind.label,
            record.note or "",
        )
        return any(needle in text.lower() for text in haystacks)

    def sort(
        self,
        transactions: list[Transaction],
        sort_by: str,
        descending: bool,
    ) -> list[Transaction]:
        """
        Stable sort by one column.

        Type ties are broken newest-first. Unknown keys sort newest-first
        regardless of the direction flag.
        """
        try:
            key = SortKey(sort_by)
        except ValueError:
            return sorted(transactions, key=lambda t: t.timestamp, reverse=True)

        if key is SortKey.TIMESTAMP:
            return sorted(transactions, key=lambda t: t.timestamp, reverse=descending)
        if key is SortKey.KIND:
            newest = sorted(transactions, key=lambda t: t.timestamp, reverse=True)
            return sorted(newest, key=lambda t: _ordinal(t.kind), reverse=descending)
        if key is SortKey.ACCOUNT_ID:
            return sorted(transactions, key=lambda t: t.display_account_id, reverse=descending)
        if key is SortKey.AMOUNT:
            return sorted(transactions, key=lambda t: t.amount, reverse=descending)
        if key is SortKey.CURRENCY:
            return sorted(transactions, key=lambda t: _ordinal(t.currency), reverse=descending)
        return sorted(transactions, key=lambda t: t.balance_after, reverse=descending)

    def describe(self, query: HistoryQuery) -> str:
        """Human-readable summary of the active filters and sort."""
        desc_parts = []
        if query.kind is not None:
            desc_parts.append(f"{query.kind.label.lower()}s")
        else:
            desc_parts.append("all transactions")
        if query.category is not None:
            desc_parts.append(f"category: {query.category.label}")
        date_str = self._date_range_str(_as_date(query.date_from), _as_date(query.date_to))
        if date_str:
            desc_parts.append(date_str)
        if query.search and query.search.strip():
            desc_parts.append(f"matching '{query.search.strip()}'")

        try:
            sort_label = SortKey(query.sort_by).value.replace("_", " ")
            direction = "descending" if query.descending else "ascending"
        except ValueError:
            sort_label, direction = "timestamp", "descending"
        desc_parts.append(f"sorted by {sort_label} {direction}")

        return " | ".join(desc_parts)

    def _date_range_str(
        self,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> str:
        """Format date range for description."""
        if date_from and date_to:
            if date_from == date_to:
                return f"on {date_from.strftime('%d %b %Y')}"
            return f"from {date_from.strftime('%d %b %Y')} to {date_to.strftime('%d %b %Y')}"
        elif date_from:
            return f"from {date_from.strftime('%d %b %Y')}"
        elif date_to:
            return f"until {date_to.strftime('%d %b %Y')}"
        return ""


_engine = HistoryQueryEngine()


def run_history_query(
    transactions: Iterable[Transaction],
    query: HistoryQuery,
) -> HistoryPage:
    """Module-level shortcut for HistoryQueryEngine().execute()."""
    return _engine.execute(transactions, query)
