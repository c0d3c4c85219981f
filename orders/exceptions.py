class OrderNotFound(LookupError):
    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class ItemNotFound(LookupError):
    def __init__(self, order_id, item_index):
        super().__init__(f"Order {order_id} has no item at index {item_index}")
        self.order_id = order_id
        self.item_index = item_index


class InvalidOrderField(ValueError):
    """The requested field cannot be edited."""
