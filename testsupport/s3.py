"""In-memory stand-in for the handful of boto3 S3 calls the blob store makes."""

import hashlib
import io

from botocore.exceptions import ClientError


def _client_error(code, status, operation):
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class InMemoryS3Client:
    def __init__(self):
        self.objects = {}
        self.put_calls = []
        self.fail_puts_for = set()
        self.fail_gets_for = set()
        # keys whose next conditional put should lose, with the number of losses left
        self.conflicts = {}

    def _etag(self, body):
        return '"%s"' % hashlib.md5(body).hexdigest()

    def get_object(self, Bucket, Key):
        if Key in self.fail_gets_for:
            raise _client_error("InternalError", 500, "GetObject")
        if (Bucket, Key) not in self.objects:
            raise _client_error("NoSuchKey", 404, "GetObject")
        body, content_type = self.objects[(Bucket, Key)]
        return {
            "Body": io.BytesIO(body),
            "ContentType": content_type,
            "ETag": self._etag(body),
        }

    def put_object(self, Bucket, Key, Body, ContentType=None, IfMatch=None, IfNoneMatch=None):
        if Key in self.fail_puts_for:
            raise _client_error("InternalError", 500, "PutObject")
        if isinstance(Body, str):
            Body = Body.encode("utf-8")

        if IfMatch is not None or IfNoneMatch is not None:
            if self.conflicts.get(Key, 0) > 0:
                self.conflicts[Key] -= 1
                raise _client_error("PreconditionFailed", 412, "PutObject")
            current = self.objects.get((Bucket, Key))
            if IfNoneMatch == "*" and current is not None:
                raise _client_error("PreconditionFailed", 412, "PutObject")
            if IfMatch is not None and (current is None or self._etag(current[0]) != IfMatch):
                raise _client_error("PreconditionFailed", 412, "PutObject")

        self.objects[(Bucket, Key)] = (bytes(Body), ContentType)
        self.put_calls.append(Key)
        return {"ETag": self._etag(bytes(Body))}

    # helpers for assertions

    def raw(self, bucket, key):
        return self.objects[(bucket, key)][0]

    def keys(self, bucket):
        return sorted(k for b, k in self.objects if b == bucket)
