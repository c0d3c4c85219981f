import logging
from datetime import datetime as _dt

from django.conf import settings

from blobstore.exceptions import StorageError
from blobstore.store import mutate_json

logger = logging.getLogger(__name__)


def _check_collection(orders):
    if orders is None:
        return []
    if not isinstance(orders, list):
        # refuse to overwrite a document we do not understand
        key = settings.ORDERS_DATA_KEY
        raise StorageError(
            f"Order collection at {key} is a {type(orders).__name__}, not a list; repair or remove that key",
            key=key,
        )
    return orders



def load_orders(store) -> list:
    return _check_collection(store.get_json(settings.ORDERS_DATA_KEY, []))


def load_orders_versioned(store):
    orders, etag = store.get_json_versioned(settings.ORDERS_DATA_KEY, [])
    return _check_collection(orders), etag


def save_orders(store, orders: list, etag=None):
    if getattr(settings, "BLOB_CONDITIONAL_WRITES", False):
        return store.put_json(settings.ORDERS_DATA_KEY, orders, if_match=etag, if_none_match=etag is None)
    return store.put_json(settings.ORDERS_DATA_KEY, orders)


def mutate_orders(store, mutate):
    return mutate_json(store, settings.ORDERS_DATA_KEY, [], lambda orders: mutate(_check_collection(orders)))


def load_ledger(store) -> dict:
    ledger = store.get_json(settings.ORDERS_SEQUENCE_KEY, {})
    if not isinstance(ledger, dict):
        logger.warning("Ignoring malformed sequence ledger at %s", settings.ORDERS_SEQUENCE_KEY)
        return {}
    return ledger


def save_ledger(store, allocated: dict):
    """Raise the stored high-water marks to at least ``allocated``."""
    def merge(current):
        merged = dict(current) if isinstance(current, dict) else {}
        for prefix, seq in allocated.items():
            try:
                previous = int(merged.get(prefix) or 0)
            except (TypeError, ValueError):
                previous = 0
            merged[prefix] = max(previous, int(seq))
        return merged

    return mutate_json(store, settings.ORDERS_SEQUENCE_KEY, {}, merge)


def _upload_sort_key(order):
    value = order.get("upload_date") if isinstance(order, dict) else None
    try:
        return (1, _dt.fromisoformat(str(value).replace("Z", "+00:00")).timestamp())
    except ValueError:
        return (0, 0.0)


def sort_by_upload_date(orders: list) -> list:
    # newest first, orders without a usable upload_date last
    return sorted(orders, key=_upload_sort_key, reverse=True)
