"""
User profile store (DynamoDB) and entitlement updates.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import get_dynamodb
from .errors import StoreError
from .logging_utils import mask_email
from .plan_limits import Plan

logger = logging.getLogger(__name__)

EMAIL_INDEX = "email-index"


def _get_table(table=None, table_name: Optional[str] = None):
    if table is not None:
        return table
    if not table_name:
        raise ValueError("Either table or table_name is required")
    return get_dynamodb().Table(table_name)


def find_profile_by_email(email: str, table=None, table_name: Optional[str] = None) -> Optional[dict]:
    """
    Look up the single profile with this exact email.

    Returns:
        The profile item (projected to its id and email), or None if there is none

    Raises:
        StoreError: the query failed or the email is ambiguous
    """
    table = _get_table(table, table_name)
    try:
        response = table.query(
            IndexName=EMAIL_INDEX,
            KeyConditionExpression=Key("email").eq(email),
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error fetching user profile: {e}")
        raise StoreError("lookup") from e

    items = response.get("Items", [])
    if len(items) > 1:
        logger.error(f"Multiple profiles share email {mask_email(email)}")
        raise StoreError("lookup")
    return items[0] if items else None


def get_profile(user_id: str, table=None, table_name: Optional[str] = None) -> Optional[dict]:
    """
    Fetch a profile by id.

    Raises:
        StoreError: the read failed
    """
    table = _get_table(table, table_name)
    try:
        response = table.get_item(Key={"id": user_id})
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error fetching user profile {user_id}: {e}")
        raise StoreError("lookup") from e
    return response.get("Item")


def revert_expired_trial(user_id: str, table=None, table_name: Optional[str] = None) -> bool:
    """
    Move a profile whose trial has ended back to freemium.

    Returns:
        True if the profile was updated. Failures are logged and reported as
        False; the caller already treats the profile as freemium.
    """
    table = _get_table(table, table_name)
    try:
        table.update_item(
            Key={"id": user_id},
            UpdateExpression="SET current_plan = :plan, trial_start_date = :none, trial_end_date = :none",
            ConditionExpression="attribute_exists(#id)",
            ExpressionAttributeNames={"#id": "id"},
            ExpressionAttributeValues={":plan": Plan.FREEMIUM.value, ":none": None},
        )
    except (ClientError, BotoCoreError) as e:
        logger.warning(f"Could not revert expired trial for {user_id}: {e}")
        return False

    logger.info(f"Trial expired for {user_id}, reverted to freemium")
    return True


def grant_premium(
    customer_email: str,
    reference: str,
    table=None,
    table_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    """
    Upgrade the profile matching ``customer_email`` to premium.

    All fields are set in a single update and are overwritten rather than
    incremented, so replaying the same payment converges to the same state.

    Returns:
        True if a profile was updated, False if no profile matched

    Raises:
        StoreError: lookup or update against the store failed
    """
    table = _get_table(table, table_name)
    profile = find_profile_by_email(customer_email, table=table)
    if profile is None:
        logger.warning(f"User with email {mask_email(customer_email)} not found in user profiles")
        return False

    started_at = (now or datetime.now(timezone.utc)).isoformat()
    try:
        table.update_item(
            Key={"id": profile["id"]},
            UpdateExpression=(
                "SET current_plan = :plan, is_premium = :premium, "
                "subscription_started_at = :started, payment_reference = :ref, "
                "trial_end_date = :trial_end"
            ),
            ConditionExpression="attribute_exists(#id)",
            ExpressionAttributeNames={"#id": "id"},
            ExpressionAttributeValues={
                ":plan": Plan.PREMIUM.value,
                ":premium": True,
                ":started": started_at,
                ":ref": reference,
                ":trial_end": None,
            },
        )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
            logger.warning(f"Profile {profile['id']} disappeared before it could be upgraded")
            return False
        logger.error(f"Error updating user profile after successful payment: {e}")
        raise StoreError("update") from e
    except BotoCoreError as e:
        logger.error(f"Error updating user profile after successful payment: {e}")
        raise StoreError("update") from e

    logger.info(
        f"User {mask_email(customer_email)} successfully upgraded to premium",
        extra={"profile_id": profile["id"], "payment_reference": reference},
    )
    return True
