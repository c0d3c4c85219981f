from django.conf import settings
from django.test import override_settings

from blobstore.exceptions import StorageError
from orders.exceptions import InvalidOrderField, ItemNotFound, OrderNotFound
from orders.services import delete_order, list_orders, update_order
from testsupport.cases import BlobStoreTestCase

from .helpers import order


def sample_orders():
    return [
        order("20240101-01", upload_date="2024-01-01T09:00:00.000Z", customer_name="甲", total_amount=60.0, items=[
            {"name": "钉子", "unit": "盒", "quantity": 2, "unit_price": 10, "amount": 20},
            {"name": "胶水", "unit": "瓶", "quantity": 4, "unit_price": 10, "amount": 40},
        ]),
        order("20240101-02", upload_date="2024-01-03T09:00:00.000Z"),
        order("20240102-01", upload_date="2024-01-02T09:00:00.000Z"),
    ]


class ListOrdersTests(BlobStoreTestCase):

    def test_empty_collection(self):
        self.assertEqual(list_orders(self.store), [])

    def test_null_collection_reads_as_empty(self):
        self.seed(settings.ORDERS_DATA_KEY, None)
        self.assertEqual(list_orders(self.store), [])

    def test_non_list_collection_names_the_key(self):
        self.seed(settings.ORDERS_DATA_KEY, {"orders": []})
        with self.assertRaises(StorageError) as ctx:
            list_orders(self.store)
        self.assertIn(settings.ORDERS_DATA_KEY, str(ctx.exception))

    def test_newest_upload_first(self):
        self.seed(settings.ORDERS_DATA_KEY, sample_orders())
        ids = [o["order_id"] for o in list_orders(self.store)]
        self.assertEqual(ids, ["20240101-02", "20240102-01", "20240101-01"])

    def test_orders_without_upload_date_sort_last(self):
        self.seed(settings.ORDERS_DATA_KEY, [order("20240101-01", upload_date=None), order("20240101-02")])
        ids = [o["order_id"] for o in list_orders(self.store)]
        self.assertEqual(ids, ["20240101-02", "20240101-01"])


class UpdateOrderTests(BlobStoreTestCase):

    def setUp(self):
        super().setUp()
        self.seed(settings.ORDERS_DATA_KEY, sample_orders())

    def test_item_quantity_update_touches_nothing_else(self):
        before = self.stored(settings.ORDERS_DATA_KEY)

        update_order(self.store, "20240101-01", "items", "20", item_index=0, item_field="quantity")

        after = self.stored(settings.ORDERS_DATA_KEY)
        self.assertEqual(after[0]["items"][0]["quantity"], 20.0)
        self.assertIsInstance(after[0]["items"][0]["quantity"], float)
        before[0]["items"][0]["quantity"] = 20.0
        self.assertEqual(after, before)

    def test_top_level_numeric_field_is_coerced(self):
        update_order(self.store, "20240101-02", "total_amount", "abc")
        self.assertEqual(self.stored(settings.ORDERS_DATA_KEY)[1]["total_amount"], 0)
        update_order(self.store, "20240101-02", "total_amount", "99.5")
        self.assertEqual(self.stored(settings.ORDERS_DATA_KEY)[1]["total_amount"], 99.5)

    def test_text_field_is_stored_as_given(self):
        update_order(self.store, "20240101-02", "customer_name", "陈老板")
        self.assertEqual(self.stored(settings.ORDERS_DATA_KEY)[1]["customer_name"], "陈老板")

    def test_item_text_field(self):
        update_order(self.store, "20240101-01", "items", "桶", item_index=1, item_field="unit")
        self.assertEqual(self.stored(settings.ORDERS_DATA_KEY)[0]["items"][1]["unit"], "桶")

    def test_unknown_order(self):
        with self.assertRaises(OrderNotFound):
            update_order(self.store, "20991231-01", "customer_name", "x")
        self.assertEqual(self.s3.put_calls, [])

    def test_unknown_item_index(self):
        for index in (2, -1):
            with self.assertRaises(ItemNotFound):
                update_order(self.store, "20240101-01", "items", "1", item_index=index, item_field="quantity")
        with self.assertRaises(ItemNotFound):
            update_order(self.store, "20240101-02", "items", "1", item_index=0, item_field="quantity")
        self.assertEqual(self.s3.put_calls, [])

    def test_order_id_is_read_only(self):
        with self.assertRaises(InvalidOrderField):
            update_order(self.store, "20240101-01", "order_id", "20240101-09")

    @override_settings(BLOB_CONDITIONAL_WRITES=True)
    def test_conditional_update_retries_on_conflict(self):
        self.s3.conflicts[settings.ORDERS_DATA_KEY] = 1
        with self.assertLogs("blobstore.store", level="WARNING"):
            update_order(self.store, "20240101-02", "customer_name", "乙")
        self.assertEqual(self.stored(settings.ORDERS_DATA_KEY)[1]["customer_name"], "乙")


class DeleteOrderTests(BlobStoreTestCase):

    def setUp(self):
        super().setUp()
        self.seed(settings.ORDERS_DATA_KEY, sample_orders())

    def test_delete(self):
        delete_order(self.store, "20240101-02")
        ids = [o["order_id"] for o in self.stored(settings.ORDERS_DATA_KEY)]
        self.assertEqual(ids, ["20240101-01", "20240102-01"])

    def test_delete_unknown_leaves_collection_untouched(self):
        raw_before = self.s3.raw(self.bucket, settings.ORDERS_DATA_KEY)
        with self.assertRaises(OrderNotFound):
            delete_order(self.store, "20991231-01")
        self.assertEqual(self.s3.raw(self.bucket, settings.ORDERS_DATA_KEY), raw_before)
        self.assertEqual(self.s3.put_calls, [])

    def test_delete_keeps_image_blob(self):
        self.s3.put_object(Bucket=self.bucket, Key="images/20240101-02-x.jpg", Body=b"img")
        delete_order(self.store, "20240101-02")
        self.assertIn("images/20240101-02-x.jpg", self.s3.keys(self.bucket))
