"""
Batch ingestion of order photos.

One request is one batch: configuration and the order collection are read
once, every file is extracted and numbered in turn against the growing
in-memory collection, and the collection is written back once at the end.
A file that fails is reported and skipped, it never aborts the batch.
"""
import logging
from datetime import timezone as dt_timezone

from django.conf import settings
from django.utils import timezone

from ai.config_store import active_provider_config, read_config
from ai.exceptions import ExtractionError
from ai.providers import get_provider, parse_extraction
from blobstore.exceptions import StorageError

from .identifiers import date_prefix, format_order_id, next_sequence
from .normalize import normalize_extraction
from .repository import load_ledger, load_orders_versioned, save_ledger, save_orders

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"


def format_timestamp(moment) -> str:
    return moment.astimezone(dt_timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def image_key(order_id: str, filename: str) -> str:
    return f"{settings.IMAGE_PREFIX}{order_id}-{filename}"


class OrderBatch:

    def __init__(self, store, clock=None):
        self.store = store
        self.clock = clock or timezone.now
        self.provider = None
        self.provider_cfg = None
        self.orders = None
        self.etag = None
        self.allocated = {}
        self.ledger = {}

    def setup(self):
        # configuration errors surface here, before any network or storage write
        config = read_config(self.store)
        self.provider = get_provider(config.get("active_provider"))
        self.provider_cfg = active_provider_config(config)
        self.provider.check(self.provider_cfg)
        self.orders, self.etag = load_orders_versioned(self.store)
        self.ledger = load_ledger(self.store)

    def process(self, upload) -> dict:
        filename = getattr(upload, "name", None) or "unknown"
        if upload is None or not getattr(upload, "size", 0):
            return {"success": False, "filename": filename, "error": "Empty or invalid file"}

        try:
            record = self._ingest_file(upload, filename)
        except (ExtractionError, StorageError) as e:
            logger.warning("Failed to process %s: %s", filename, e)
            return {"success": False, "filename": filename, "error": str(e)}
        except Exception as e:
            logger.exception("Failed to process %s", filename)
            return {"success": False, "filename": filename, "error": str(e)}

        self.orders.append(record)
        return {"success": True, "filename": filename, "data": record}

    def _ingest_file(self, upload, filename):
        data = upload.read()
        if not data:
            raise ExtractionError("Empty or invalid file")
        mime_type = getattr(upload, "content_type", None) or DEFAULT_MIME_TYPE

        text = self.provider.extract(data, mime_type, self.provider_cfg)
        fields = normalize_extraction(parse_extraction(text), today=self.clock().astimezone(dt_timezone.utc).date())

        prefix = date_prefix(fields["order_date"])
        ledger = {**self.ledger, **self.allocated}
        seq = next_sequence(self.orders, prefix, ledger)
        order_id = format_order_id(prefix, seq)

        key = image_key(order_id, filename)
        self.store.put_bytes(key, data, mime_type)
        # number is only taken once its image is stored
        self.allocated[prefix] = seq

        return {
            "order_id": order_id,
            "customer_name": fields["customer_name"],
            "items": fields["items"],
            "total_amount": fields["total_amount"],
            "order_date": fields["order_date"],
            "upload_date": format_timestamp(self.clock()),
            "image_r2_key": key,
        }

    def commit(self):
        save_ledger(self.store, self.allocated)
        save_orders(self.store, self.orders, self.etag)


def ingest_batch(store, files, clock=None) -> list:
    """
    Process ``files`` (uploaded file objects) as one batch.

    Setup and commit failures raise. Per-file failures are returned in the
    result list, in submission order.
    """
    batch = OrderBatch(store, clock=clock)
    batch.setup()

    results = [batch.process(upload) for upload in files]

    succeeded = sum(1 for r in results if r["success"])
    if succeeded:
        # image blobs are already stored, a failure here orphans them
        batch.commit()
    logger.info("Order batch done: %d of %d files ingested", succeeded, len(results))
    return results
