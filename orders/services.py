import logging

from .exceptions import InvalidOrderField, ItemNotFound, OrderNotFound
from .normalize import NUMERIC_FIELDS, coerce_number
from .repository import load_orders, mutate_orders, sort_by_upload_date

logger = logging.getLogger(__name__)

READ_ONLY_FIELDS = ("order_id",)


def list_orders(store) -> list:
    return sort_by_upload_date(load_orders(store))


def _find_order(orders, order_id):
    for order in orders:
        if isinstance(order, dict) and order.get("order_id") == order_id:
            return order
    raise OrderNotFound(order_id)


def _coerce(field, value):
    if field in NUMERIC_FIELDS:
        return coerce_number(value)
    return value


def update_order(store, order_id, field, value, item_index=None, item_field=None):
    """
    Overwrite one field of an order, or one field of one of its items when
    ``field`` is ``"items"`` and both ``item_index`` and ``item_field`` are given.
    """
    if field in READ_ONLY_FIELDS:
        raise InvalidOrderField(f"{field} cannot be changed")

    def mutate(orders):
        order = _find_order(orders, order_id)
        if field == "items" and item_index is not None and item_field:
            items = order.get("items")
            if (not isinstance(items, list) or item_index < 0 or item_index >= len(items)
                    or not isinstance(items[item_index], dict)):
                raise ItemNotFound(order_id, item_index)
            items[item_index][item_field] = _coerce(item_field, value)
        else:
            order[field] = _coerce(field, value)
        return orders

    mutate_orders(store, mutate)
    logger.info("Order %s updated (%s)", order_id, item_field if field == "items" and item_field else field)


def delete_order(store, order_id):
    # the image blob stays behind
    def mutate(orders):
        remaining = [o for o in orders if not (isinstance(o, dict) and o.get("order_id") == order_id)]
        if len(remaining) == len(orders):
            raise OrderNotFound(order_id)
        return remaining

    mutate_orders(store, mutate)
    logger.info("Order %s deleted", order_id)
