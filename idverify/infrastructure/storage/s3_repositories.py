# idverify/infrastructure/storage/s3_repositories.py
from __future__ import annotations
from typing import Tuple
import logging

from ...domain.errors import CollaboratorError
from ...domain.value_objects import ImageRef
from ..aws import AWS_ERRORS, aws_client, collaborator_error

logger = logging.getLogger("idverify.verify")


class S3ObjectStore:
    """Object store over one default bucket; a ref may name another bucket."""

    def __init__(self, bucket: str, client=None):
        self.bucket = bucket
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = aws_client("s3")
        return self._client

    def locate(self, ref: ImageRef) -> Tuple[str, str]:
        if not ref.key:
            raise CollaboratorError("storage", "image reference has no key")
        return ref.bucket or self.bucket, ref.key

    def fetch(self, ref: ImageRef) -> bytes:
        if ref.is_inline:
            return ref.data
        bucket, key = self.locate(ref)
        try:
            obj = self.client.get_object(Bucket=bucket, Key=key)
            data = obj["Body"].read()
        except AWS_ERRORS as ex:
            logger.info({"event": "s3_get_error", "bucket": bucket, "key": key, "error": str(ex)})
            raise collaborator_error("storage", ex) from ex
        logger.info({"event": "s3_get", "bucket": bucket, "key": key, "bytes": len(data)})
        return data
