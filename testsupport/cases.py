import json
from unittest import mock

from django.conf import settings
from django.test import SimpleTestCase

from blobstore.store import BlobDocumentStore
from testsupport.s3 import InMemoryS3Client


class BlobStoreTestCase(SimpleTestCase):
    """Routes every blob store built from settings to an in-memory bucket."""

    def setUp(self):
        super().setUp()
        self.s3 = InMemoryS3Client()
        self.bucket = settings.AWS_STORAGE_BUCKET_NAME
        self.store = BlobDocumentStore(self.s3, self.bucket)
        patcher = mock.patch("blobstore.store.get_s3_client", return_value=self.s3)
        patcher.start()
        self.addCleanup(patcher.stop)

    def seed(self, key, document):
        self.s3.put_object(Bucket=self.bucket, Key=key, Body=json.dumps(document).encode("utf-8"))
        self.s3.put_calls.clear()

    def stored(self, key):
        return json.loads(self.s3.raw(self.bucket, key))
