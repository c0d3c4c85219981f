"""
Order identifiers: ``YYYYMMDD-NN``, one sequence per order date.

The next number is one past the highest of
  * every order currently in the collection for that date, and
  * the sequence ledger, which remembers numbers handed out to orders that
    have since been deleted.
"""


def date_prefix(order_date: str) -> str:
    return order_date.replace("-", "")


def sequence_of(order_id, prefix: str):
    if not isinstance(order_id, str) or not order_id.startswith(prefix + "-"):
        return None
    suffix = order_id[len(prefix) + 1:]
    if not suffix.isdigit():
        return None
    return int(suffix)


def next_sequence(orders, prefix: str, ledger=None) -> int:
    highest = 0
    if ledger:
        try:
            highest = int(ledger.get(prefix) or 0)
        except (TypeError, ValueError):
            highest = 0
    for order in orders:
        seq = sequence_of(order.get("order_id") if isinstance(order, dict) else None, prefix)
        if seq is not None and seq > highest:
            highest = seq
    return highest + 1


def format_order_id(prefix: str, seq: int) -> str:
    return f"{prefix}-{seq:02d}"
