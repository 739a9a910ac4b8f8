"""DynamoDB backend for the favorites record."""
import logging
from typing import List, Optional

import boto3
from botocore.exceptions import ClientError

from processor.errors import StoreBackendError

logger = logging.getLogger(__name__)


class DynamoDBFavoritesBackend:
    """Stores the favorites record as a single DynamoDB item."""

    KEY_ATTRIBUTE = 'store_key'
    IDS_ATTRIBUTE = 'event_ids'

    def __init__(self, table_name: str, key: str = 'favoriteEventIds',
                 region_name: Optional[str] = None):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the DynamoDB table (hash key: store_key)
            key: Value of store_key for the favorites item
            region_name: AWS region; defaults to the boto3 session region
        """
        self.table_name = table_name
        self.key = key
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBFavoritesBackend for table: {table_name}")

    def load(self) -> List[str]:
        """
        Read the favorited event ids.

        Returns:
            List of event ids; empty when the item does not exist yet

        Raises:
            StoreBackendError: If DynamoDB rejects the read
        """
        try:
            response = self.table.get_item(Key={self.KEY_ATTRIBUTE: self.key})
        except ClientError as e:
            logger.error(f"Error reading favorites from DynamoDB: {e}")
            raise StoreBackendError(f"DynamoDB read failed: {e}") from e

        item = response.get('Item')
        if not item:
            return []

        ids = item.get(self.IDS_ATTRIBUTE, [])
        return [event_id for event_id in ids if isinstance(event_id, str)]

    def save(self, event_ids: List[str]) -> None:
        """
        Replace the favorites item with the given ids.

        Args:
            event_ids: Favorited event ids

        Raises:
            StoreBackendError: If DynamoDB rejects the write
        """
        item = {
            self.KEY_ATTRIBUTE: self.key,
            self.IDS_ATTRIBUTE: list(event_ids)
        }
        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(f"Error writing favorites to DynamoDB: {e}")
            raise StoreBackendError(f"DynamoDB write failed: {e}") from e

        logger.debug(f"Wrote {len(event_ids)} favorites to {self.table_name}")
