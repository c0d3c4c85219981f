import math
import re
from datetime import datetime as _dt, date as _date

PLACEHOLDER_CUSTOMER = "N/A"

NUMERIC_FIELDS = ("quantity", "unit_price", "amount", "total_amount")

DATE_FORMATS = ("%Y-%m-%d", "%Y.%m.%d", "%Y/%m/%d")

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def parse_number(value):
    """Best-effort number from AI output or form input, ``None`` if there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
        return num if math.isfinite(num) else None
    s = str(value).strip()
    if not s:
        return None
    neg = False
    if s.startswith("(") and s.endswith(")"):
        neg = True
        s = s[1:-1]
    for sym in [" ", ",", "¥", "￥", "元", "RMB", "CNY", "$", "USD", "€", "£"]:
        s = s.replace(sym, "")
    match = _LEADING_NUMBER.match(s)
    if not match:
        return None
    num = float(match.group(0))
    if not math.isfinite(num):
        return None
    return -num if neg else num


def coerce_number(value) -> float:
    num = parse_number(value)
    return num if num is not None else 0


def parse_order_date(value):
    if isinstance(value, _date):
        return value
    if not value:
        return None
    s = str(value).strip()
    for fmt_str in DATE_FORMATS:
        try:
            return _dt.strptime(s, fmt_str).date()
        except ValueError:
            continue
    return None


def normalize_extraction(data: dict, today: _date) -> dict:
    """Fill the order fields from parsed AI output. Item contents are kept as returned."""
    customer_name = data.get("customer_name")
    if not customer_name:
        customer_name = PLACEHOLDER_CUSTOMER
    elif not isinstance(customer_name, str):
        customer_name = str(customer_name)

    items = data.get("items")
    if not isinstance(items, list):
        items = []

    order_date = parse_order_date(data.get("order_date")) or today

    return {
        "customer_name": customer_name,
        "items": items,
        "total_amount": coerce_number(data.get("total_amount")),
        "order_date": order_date.isoformat(),
    }
