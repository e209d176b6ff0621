# Overview: File export formats (JSON and CSV) for products, sales and full backups.

"""
Export formats

JSON: pretty-printed (2-space indent), exactly the persisted document shape.

CSV: text fields are double-quoted (embedded quotes doubled), numeric fields
are written bare. Two callers want different number formatting, so it is a
per-call choice:
- products: price "raw" (20, 19.5) or "fixed" (20.00, 19.50)
- sales without items: ID,Date,Customer,Total Price (bare date, fixed total)
- sales with items: ID,Date,Customer,Total Price,Items (quoted date, raw
  total, item count)
Dates are the sale's local calendar day (YYYY-MM-DD).
"""
from __future__ import annotations

import json
from decimal import Decimal
from typing import Iterable

from ..records import Product, Sale, Settings, format_decimal
from ..time_utils import local_day

PRICE_FORMAT_RAW = "raw"
PRICE_FORMAT_FIXED = "fixed"
PRICE_FORMATS = (PRICE_FORMAT_RAW, PRICE_FORMAT_FIXED)

PRODUCTS_CSV_HEADER = "ID,Name,Category,Price,Stock"
SALES_CSV_HEADER = "ID,Date,Customer,Total Price"
SALES_CSV_HEADER_WITH_ITEMS = "ID,Date,Customer,Total Price,Items"

WALK_IN_CUSTOMER = "Walk-in Customer"


def _quote(value: str) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def _fixed(value: Decimal) -> str:
    return f"{value:.2f}"


def _price(value: Decimal, price_format: str) -> str:
    if price_format == PRICE_FORMAT_FIXED:
        return _fixed(value)
    return format_decimal(value)


def to_json(data) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def products_to_json(products: Iterable[Product]) -> str:
    return to_json([p.to_dict() for p in products])


def sales_to_json(sales: Iterable[Sale]) -> str:
    return to_json([s.to_dict() for s in sales])


def backup_to_json(products: Iterable[Product], sales: Iterable[Sale], settings: Settings) -> str:
    return to_json({
        "products": [p.to_dict() for p in products],
        "sales": [s.to_dict() for s in sales],
        "settings": settings.to_dict(),
    })


def products_to_csv(products: Iterable[Product], price_format: str = PRICE_FORMAT_RAW) -> str:
    if price_format not in PRICE_FORMATS:
        raise ValueError(f"price_format must be one of: {', '.join(PRICE_FORMATS)}")

    lines = [PRODUCTS_CSV_HEADER]
    for p in products:
        lines.append(",".join([
            str(p.id),
            _quote(p.name),
            _quote(p.category),
            _price(p.price, price_format),
            str(p.stock),
        ]))
    return "\n".join(lines) + "\n"


def sales_to_csv(sales: Iterable[Sale], include_items: bool = False) -> str:
    lines = [SALES_CSV_HEADER_WITH_ITEMS if include_items else SALES_CSV_HEADER]
    for s in sales:
        day = local_day(s.date).isoformat()
        customer = _quote(s.customer_name or WALK_IN_CUSTOMER)
        if include_items:
            row = [str(s.id), _quote(day), customer, format_decimal(s.total_price), str(len(s.items))]
        else:
            row = [str(s.id), day, customer, _fixed(s.total_price)]
        lines.append(",".join(row))
    return "\n".join(lines) + "\n"
