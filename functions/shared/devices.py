"""
Anonymous device records (DynamoDB).

Visitors without an account are tracked per device id so the anonymous
tier's daily quota can be applied to them.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import get_dynamodb
from .errors import StoreError

logger = logging.getLogger(__name__)


def get_or_create_device(
    device_id: str,
    table=None,
    table_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Fetch the device record, creating an empty one on first sight.

    Raises:
        StoreError: the read or the initial write failed
    """
    if table is None:
        if not table_name:
            raise ValueError("Either table or table_name is required")
        table = get_dynamodb().Table(table_name)

    try:
        item = table.get_item(Key={"device_id": device_id}).get("Item")
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error fetching anonymous device {device_id}: {e}")
        raise StoreError("lookup") from e
    if item is not None:
        return item

    timestamp = now or datetime.now(timezone.utc)
    item = {
        "device_id": device_id,
        "messages_today": 0,
        "voice_notes_used": 0,
        "last_active_date": timestamp.date().isoformat(),
        "created_at": timestamp.isoformat(),
    }
    try:
        table.put_item(
            Item=item,
            ConditionExpression="attribute_not_exists(device_id)",
        )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") != "ConditionalCheckFailedException":
            logger.error(f"Failed to create anonymous device {device_id}: {e}")
            raise StoreError("update") from e
        # Created concurrently by another request; its counters start at zero too
        logger.info(f"Anonymous device {device_id} already exists")
    except BotoCoreError as e:
        logger.error(f"Failed to create anonymous device {device_id}: {e}")
        raise StoreError("update") from e
    else:
        logger.info(f"Created anonymous device record {device_id}")
    return item
