# idverify/infrastructure/storage/dynamodb_repository.py
from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, Optional
import datetime
import logging

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from ...domain.value_objects import VerificationRecord
from ..aws import AWS_ERRORS, aws_client, collaborator_error

logger = logging.getLogger("idverify.verify")

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _now_iso() -> str:
    return datetime.datetime.utcnow().replace(tzinfo=datetime.timezone.utc).isoformat()


def _to_dynamo(value: Any) -> Any:
    # DynamoDB numbers must be Decimal, never float.
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo(v) for v in value]
    return value


def _serialize(value: Any) -> Dict[str, Any]:
    return _serializer.serialize(_to_dynamo(value))


def _deserialize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    return {k: _deserializer.deserialize(v) for k, v in item.items()}


class DynamoVerificationRepository:
    """
    One item per user, keyed by "userId".
    update() is a SET-only UpdateItem over the patch's fields, so a patch never
    removes attributes it does not name.
    """

    def __init__(self, table_name: str, client=None):
        self.table_name = table_name
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = aws_client("dynamodb")
        return self._client

    def get(self, user_id: str) -> Optional[VerificationRecord]:
        try:
            resp = self.client.get_item(
                TableName=self.table_name,
                Key={"userId": {"S": user_id}},
                ConsistentRead=True,
            )
        except AWS_ERRORS as ex:
            raise collaborator_error("verification store", ex) from ex
        item = resp.get("Item")
        if not item:
            return None
        return VerificationRecord.from_item(_deserialize_item(item))

    def put(self, record: VerificationRecord) -> None:
        now = _now_iso()
        record.created_at = record.created_at or now
        record.updated_at = now
        item = {k: _serialize(v) for k, v in record.to_item().items()}
        try:
            self.client.put_item(TableName=self.table_name, Item=item)
        except AWS_ERRORS as ex:
            raise collaborator_error("verification store", ex) from ex

    def update(self, user_id: str, patch) -> VerificationRecord:
        fields = dict(patch.to_fields())
        now = _now_iso()
        fields["updatedAt"] = now

        names: Dict[str, str] = {"#createdAt": "createdAt"}
        values: Dict[str, Any] = {":createdAt": _serialize(now)}
        assignments = ["#createdAt = if_not_exists(#createdAt, :createdAt)"]
        for i, (name, value) in enumerate(fields.items()):
            names[f"#f{i}"] = name
            values[f":v{i}"] = _serialize(value)
            assignments.append(f"#f{i} = :v{i}")

        try:
            resp = self.client.update_item(
                TableName=self.table_name,
                Key={"userId": {"S": user_id}},
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except AWS_ERRORS as ex:
            logger.info({"event": "dynamodb_update_error", "user_id": user_id, "error": str(ex)})
            raise collaborator_error("verification store", ex) from ex

        logger.info({"event": "record_updated", "user_id": user_id, "fields": sorted(fields)})
        return VerificationRecord.from_item(_deserialize_item(resp.get("Attributes") or {"userId": {"S": user_id}}))
