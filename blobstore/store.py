import copy
import json
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from .exceptions import StorageError, WriteConflict

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}
CONFLICT_CODES = {"PreconditionFailed", "ConditionalRequestConflict", "412"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _status_code(exc: ClientError):
    return exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")


def is_not_found(exc: ClientError) -> bool:
    return _error_code(exc) in NOT_FOUND_CODES or _status_code(exc) == 404


def is_conflict(exc: ClientError) -> bool:
    return _error_code(exc) in CONFLICT_CODES or _status_code(exc) == 412


def get_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=getattr(settings, "AWS_S3_ENDPOINT_URL", None),
        aws_access_key_id=getattr(settings, "AWS_ACCESS_KEY_ID", None),
        aws_secret_access_key=getattr(settings, "AWS_SECRET_ACCESS_KEY", None),
        region_name=getattr(settings, "AWS_REGION", None),
    )


class BlobDocumentStore:
    """
    Whole-document JSON storage on top of an S3 bucket.

    Reads fail soft: an absent key or a body that is not JSON yields the
    caller's default. Writes fail hard and replace whatever is at the key,
    unless a precondition (ETag) is passed.
    """

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def get_json(self, key: str, default=None):
        document, _ = self.get_json_versioned(key, default)
        return document

    def get_json_versioned(self, key: str, default=None):
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if is_not_found(e):
                return copy.deepcopy(default), None
            raise StorageError(f"Failed to read {key}: {e}", key=key) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read {key}: {e}", key=key) from e

        etag = obj.get("ETag")
        try:
            raw = obj["Body"].read()
            return json.loads(raw), etag
        except (ValueError, UnicodeDecodeError) as e:
            logger.error("Failed to parse JSON from blob key %s: %s", key, e)
            return copy.deepcopy(default), etag

    def put_json(self, key: str, document, if_match: str | None = None, if_none_match: bool = False):
        body = json.dumps(document, ensure_ascii=False, indent=2).encode("utf-8")
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": "application/json",
        }
        if if_match:
            params["IfMatch"] = if_match
        elif if_none_match:
            params["IfNoneMatch"] = "*"

        try:
            resp = self.client.put_object(**params)
        except ClientError as e:
            if (if_match or if_none_match) and is_conflict(e):
                raise WriteConflict(f"Concurrent write detected on {key}", key=key) from e
            raise StorageError(f"Failed to write {key}: {e}", key=key) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to write {key}: {e}", key=key) from e
        return resp.get("ETag")

    def put_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream"):
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to write {key}: {e}", key=key) from e


def get_blob_store() -> BlobDocumentStore:
    return BlobDocumentStore(get_s3_client(), settings.AWS_STORAGE_BUCKET_NAME)


def mutate_json(store: BlobDocumentStore, key: str, default, mutate):
    """
    Read the document at ``key``, apply ``mutate`` and write the result back.

    ``mutate`` receives the current document and returns the document to
    store. It may raise to abort, in which case nothing is written.

    With ``BLOB_CONDITIONAL_WRITES`` the write is guarded by the ETag that was
    read, and the whole cycle is retried from a fresh read on conflict.
    """
    if not getattr(settings, "BLOB_CONDITIONAL_WRITES", False):
        document = store.get_json(key, default)
        updated = mutate(document)
        store.put_json(key, updated)
        return updated

    attempts = max(1, int(getattr(settings, "BLOB_WRITE_RETRIES", 3)))
    for attempt in range(1, attempts + 1):
        document, etag = store.get_json_versioned(key, default)
        updated = mutate(document)
        try:
            store.put_json(key, updated, if_match=etag, if_none_match=etag is None)
            return updated
        except WriteConflict:
            if attempt == attempts:
                raise
            logger.warning("Write conflict on %s, retrying (%d/%d)", key, attempt, attempts)
