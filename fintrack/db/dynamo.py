import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from fintrack.core.config import settings
from fintrack.core.exceptions import RemoteServiceError
from fintrack.db.cache import query_cache

logger = logging.getLogger(__name__)

# Every table uses user_id as partition key and item_id as sort key.
COLLECTIONS = (
    "transactions",
    "budgets",
    "loans",
    "loan_payments",
    "lending_transactions",
    "recurring_payments",
    "user_settings",
    "subscriptions",
)

# Single-record collections store their item under this sort key
SINGLETON_ID = "current"

# Initialize DynamoDB resource
dynamodb = boto3.resource("dynamodb", region_name=settings.DYNAMO_REGION)

tables = {name: dynamodb.Table(f"{settings.DYNAMO_TABLE_PREFIX}-{name}") for name in COLLECTIONS}


def _table(collection: str):
    if collection not in tables:
        raise ValueError(f"Unknown collection: {collection}")
    return tables[collection]


def _rejected(operation: str, collection: str, error: ClientError) -> RemoteServiceError:
    message = error.response.get("Error", {}).get("Message", str(error))
    logger.error(f"{operation} on {collection} failed: {message}")
    return RemoteServiceError(f"{operation} failed: {message}", status_code=500)


def put_item(collection: str, item: Dict[str, Any]) -> bool:
    """Insert or replace an item. The item must carry user_id and item_id."""
    try:
        _table(collection).put_item(Item=_convert_for_dynamo(item))
    except ClientError as e:
        raise _rejected("put_item", collection, e)
    query_cache.invalidate(collection, item["user_id"])
    return True


def put_items(collection: str, user_id: str, items: List[Dict[str, Any]]) -> int:
    """Batch insert; returns the number of items written."""
    if not items:
        return 0
    try:
        with _table(collection).batch_writer() as batch:
            for item in items:
                batch.put_item(Item=_convert_for_dynamo(item))
    except ClientError as e:
        raise _rejected("put_items", collection, e)
    query_cache.invalidate(collection, user_id)
    return len(items)


def get_item(collection: str, user_id: str, item_id: str) -> Optional[Dict[str, Any]]:
    try:
        response = _table(collection).get_item(Key={"user_id": user_id, "item_id": item_id})
    except ClientError as e:
        raise _rejected("get_item", collection, e)
    item = response.get("Item")
    return _from_dynamo(item) if item else None


def list_items(
    collection: str,
    user_id: str,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    date_field: str = "date",
    filters: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    Query all items of a user, optionally restricted to an inclusive
    ISO date window on ``date_field`` and to equality ``filters``.
    """
    filters = {k: v for k, v in (filters or {}).items() if v is not None}
    cache_key = query_cache.make_key(
        collection, user_id, date_from=date_from, date_to=date_to, date_field=date_field, filters=filters
    )
    cached = query_cache.get(cache_key)
    if cached is not None:
        return cached

    filter_expression = None
    if date_from:
        filter_expression = Attr(date_field).gte(date_from)
    if date_to:
        # Timestamps like 2025-11-30T10:00 sort after 2025-11-30
        condition = Attr(date_field).lte(f"{date_to}T23:59:59.999999")
        filter_expression = condition if filter_expression is None else filter_expression & condition
    for field_name, value in filters.items():
        condition = Attr(field_name).eq(value)
        filter_expression = condition if filter_expression is None else filter_expression & condition

    query_kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("user_id").eq(user_id)}
    if filter_expression is not None:
        query_kwargs["FilterExpression"] = filter_expression

    items: List[Dict[str, Any]] = []
    try:
        while True:
            response = _table(collection).query(**query_kwargs)
            items.extend(_from_dynamo(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            query_kwargs["ExclusiveStartKey"] = last_key
    except ClientError as e:
        raise _rejected("list_items", collection, e)

    query_cache.set(cache_key, items)
    return items


def update_item(collection: str, user_id: str, item_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Apply partial updates to an existing item. Returns the updated item or
    None when the item does not exist.
    """
    if not updates:
        return None

    updates = dict(updates, updated_at=datetime.now(timezone.utc).isoformat())
    update_expression_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {}

    for idx, (key, value) in enumerate(updates.items()):
        placeholder = f"#f{idx}"
        value_placeholder = f":v{idx}"
        update_expression_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_names[placeholder] = key
        expression_attribute_values[value_placeholder] = value

    update_expression = "SET " + ", ".join(update_expression_parts)

    try:
        response = _table(collection).update_item(
            Key={"user_id": user_id, "item_id": item_id},
            UpdateExpression=update_expression,
            ConditionExpression="attribute_exists(item_id)",
            ExpressionAttributeNames=expression_attribute_names,
            ExpressionAttributeValues=_convert_for_dynamo(expression_attribute_values),
            ReturnValues="ALL_NEW",
        )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
            return None
        raise _rejected("update_item", collection, e)

    query_cache.invalidate(collection, user_id)
    attributes = response.get("Attributes")
    return _from_dynamo(attributes) if attributes else None


def delete_item(collection: str, user_id: str, item_id: str) -> bool:
    try:
        response = _table(collection).delete_item(
            Key={"user_id": user_id, "item_id": item_id},
            ReturnValues="ALL_OLD",
        )
    except ClientError as e:
        raise _rejected("delete_item", collection, e)
    deleted = "Attributes" in response
    if deleted:
        query_cache.invalidate(collection, user_id)
    return deleted


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj


# Single-record collections


def get_user_settings(user_id: str) -> Dict[str, Any]:
    return get_item("user_settings", user_id, SINGLETON_ID) or {}


def save_user_settings(user_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``values`` into the stored settings record."""
    record = get_user_settings(user_id)
    record.update(values)
    record.update(
        {
            "user_id": user_id,
            "item_id": SINGLETON_ID,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
    )
    put_item("user_settings", record)
    return record


def get_subscription(user_id: str) -> Optional[Dict[str, Any]]:
    return get_item("subscriptions", user_id, SINGLETON_ID)


def save_subscription(user_id: str, subscription: Dict[str, Any]) -> Dict[str, Any]:
    record = dict(subscription, user_id=user_id, item_id=SINGLETON_ID)
    put_item("subscriptions", record)
    return record
