"""History query package."""

from ledgerbook.queries.history import (
    HistoryQueryEngine,
    clamp_page,
    run_history_query,
    total_pages,
)

__all__ = ["HistoryQueryEngine", "clamp_page", "run_history_query", "total_pages"]
