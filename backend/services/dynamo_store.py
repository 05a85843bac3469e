"""Conversation store backed by a DynamoDB table (user_id hash key, timestamp range key)."""
import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from models.conversation import Turn
from config import AWS_REGION, CHAT_TABLE
from services.conversation_store import ConversationStore
from services.errors import HistoryFetchError, StorageWriteError

logger = logging.getLogger(__name__)


class DynamoConversationStore(ConversationStore):
    """Stores turns as string attributes; a put never overwrites an existing turn."""

    def __init__(
        self,
        table_name: Optional[str] = None,
        region_name: Optional[str] = None,
        client: Optional[Any] = None
    ):
        super().__init__(table_name if table_name is not None else CHAT_TABLE)
        self.client = client or boto3.client("dynamodb", region_name=region_name or AWS_REGION)
        logger.info(f"DynamoConversationStore initialized (table={self._write_table()})")

    def append(self, turn: Turn) -> None:
        table = self._write_table()
        item = {name: {"S": value} for name, value in turn.to_record().items()}

        try:
            self.client.put_item(
                TableName=table,
                Item=item,
                ConditionExpression="attribute_not_exists(#ts)",
                ExpressionAttributeNames={"#ts": "timestamp"},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error saving turn for user {turn.user_id} to DynamoDB table {table}: {e}")
            raise StorageWriteError(f"Failed to save turn to DynamoDB: {e}", cause=e) from e

        logger.debug(f"Saved {turn.role.value} turn for user {turn.user_id} to {table}")

    def history(self, user_id: str) -> List[Turn]:
        table = self._read_table()
        items: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {
            "TableName": table,
            "KeyConditionExpression": "#uid = :user_id",
            "ExpressionAttributeNames": {"#uid": "user_id"},
            "ExpressionAttributeValues": {":user_id": {"S": user_id}},
            "ScanIndexForward": True,
        }

        try:
            while True:
                response = self.client.query(**params)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                params["ExclusiveStartKey"] = last_key
        except (BotoCoreError, ClientError) as e:
            logger.error(f"DynamoDB query failed for user {user_id}: {e}")
            raise HistoryFetchError(f"DynamoDB query failed: {e}", cause=e) from e

        logger.debug(f"Fetched {len(items)} turns for user {user_id}")
        return self._to_turns(user_id, [self._unwrap(item) for item in items])

    @staticmethod
    def _unwrap(item: Dict[str, Any]) -> Dict[str, Any]:
        """Flatten {"name": {"S": value}} attributes; non-string attributes pass through as-is."""
        record: Dict[str, Any] = {}
        for name, value in item.items():
            if isinstance(value, dict) and "S" in value:
                record[name] = value["S"]
            else:
                record[name] = value
        return record
