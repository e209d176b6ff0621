# Overview: Report derivations over product and sale snapshots; pure functions with no store access.

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from ..records import DEFAULT_LOW_STOCK_THRESHOLD, Product, Sale
from ..time_utils import local_day, utcnow

WINDOW_ALL = "all"
WINDOW_TODAY = "today"
WINDOW_LAST_7_DAYS = "last7days"
WINDOW_LAST_30_DAYS = "last30days"
WINDOWS = (WINDOW_ALL, WINDOW_TODAY, WINDOW_LAST_7_DAYS, WINDOW_LAST_30_DAYS)

# Names used by the reports page time-frame selector
WINDOW_ALIASES = {"week": WINDOW_LAST_7_DAYS, "month": WINDOW_LAST_30_DAYS}

_WINDOW_DAYS = {WINDOW_LAST_7_DAYS: 7, WINDOW_LAST_30_DAYS: 30}


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


def resolve_window(window: str | None) -> str:
    name = (window or WINDOW_ALL).strip().lower()
    name = WINDOW_ALIASES.get(name, name)
    if name not in WINDOWS:
        raise ReportError(f"window must be one of: {', '.join(WINDOWS)}")
    return name


def filter_by_window(sales: Iterable[Sale], window: str | None = WINDOW_ALL, now: datetime | None = None) -> list[Sale]:
    """
    Sales inside the time window, relative to `now` (UTC-naive, default: now).

    today compares local calendar days; lastNdays keeps date >= now - N days.
    """
    window = resolve_window(window)
    now = now or utcnow()
    sales = list(sales)

    if window == WINDOW_ALL:
        return sales
    if window == WINDOW_TODAY:
        today = local_day(now)
        return [s for s in sales if local_day(s.date) == today]

    cutoff = now - timedelta(days=_WINDOW_DAYS[window])
    return [s for s in sales if s.date >= cutoff]


def revenue_by_date(sales: Iterable[Sale]) -> dict[str, Decimal]:
    """Sum of totalPrice per local calendar day (YYYY-MM-DD), oldest day first."""
    totals: dict[str, Decimal] = {}
    for sale in sales:
        key = local_day(sale.date).isoformat()
        totals[key] = totals.get(key, Decimal("0")) + sale.total_price
    return dict(sorted(totals.items()))


def top_products(sales: Iterable[Sale], n: int = 5) -> list[dict]:
    """
    Best sellers by revenue, at most n rows.

    Rows are aggregated by productId; the name is the first snapshot seen.
    Equal revenues keep first-seen order.
    """
    if n < 0:
        raise ReportError("n must be >= 0")

    rows: dict[int, dict] = {}
    for sale in sales:
        for item in sale.items:
            row = rows.get(item.product_id)
            if row is None:
                row = rows[item.product_id] = {
                    "productId": item.product_id,
                    "name": item.product_name,
                    "quantity": 0,
                    "revenue": Decimal("0"),
                }
            row["quantity"] += item.quantity
            row["revenue"] += item.total

    ranked = sorted(rows.values(), key=lambda r: r["revenue"], reverse=True)
    return ranked[:n]


def category_distribution(products: Iterable[Product]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for product in products:
        counts[product.category] = counts.get(product.category, 0) + 1
    return counts


def low_stock(products: Iterable[Product], threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> list[Product]:
    return [p for p in products if p.stock < threshold]


def total_revenue(sales: Iterable[Sale]) -> Decimal:
    return sum((s.total_price for s in sales), Decimal("0"))


def dashboard_summary(
    products: Iterable[Product],
    sales: Iterable[Sale],
    threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> dict:
    products = list(products)
    sales = list(sales)
    return {
        "total_products": len(products),
        "total_sales": len(sales),
        "total_revenue": total_revenue(sales),
        "low_stock_count": len(low_stock(products, threshold)),
    }
