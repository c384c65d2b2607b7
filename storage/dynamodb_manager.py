"""DynamoDB upsert sink for canonical events."""
import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from processor.models import CanonicalEvent, to_iso_z

logger = logging.getLogger(__name__)


def _to_dynamodb_value(value: Any) -> Any:
    """Convert an opaque JSON-like value into types DynamoDB accepts."""
    return json.loads(json.dumps(value, default=str), parse_float=Decimal)


class DynamoDBEventSink:
    """Upserts canonical events into a DynamoDB table keyed by event_id."""

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region (default: boto3's configured region)
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBEventSink for table: {table_name}")

    def is_available(self) -> bool:
        """
        Check that the table exists and is reachable.

        Returns:
            True if the table can be described, False otherwise
        """
        try:
            self.table.load()
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"DynamoDB table {self.table_name} unavailable: {e}")
            return False

    def upsert(self, event_id: str, event: CanonicalEvent) -> bool:
        """
        Write an event, replacing any existing item with the same id.

        Args:
            event_id: Stable event id (partition key)
            event: Event to write

        Returns:
            True on success, False if the write failed
        """
        try:
            self.table.put_item(Item=self._event_to_item(event_id, event))
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error writing event {event_id}: {e}")
            return False

    def _event_to_item(self, event_id: str, event: CanonicalEvent) -> Dict[str, Any]:
        """
        Convert CanonicalEvent object to DynamoDB item.

        Instants are stored as ISO 8601 UTC strings; 'extra' only when non-empty.
        """
        item = {
            'event_id': event_id,
            'source_id': event.source_id,
            'source_name': event.source_name,
            'source_url': event.source_url,
            'title': event.title,
            'start_at': to_iso_z(event.start_at),
            'end_at': to_iso_z(event.end_at),
            'location_name': event.location_name,
            'location_address': event.location_address,
            'description': event.description,
            'tags': list(event.tags),
        }
        if event.extra:
            item['extra'] = _to_dynamodb_value(event.extra)
        return item
