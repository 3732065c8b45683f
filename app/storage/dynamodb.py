import boto3
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from uuid import uuid4
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from app.settings import settings
import logging

log = logging.getLogger(__name__)

OWNER_INDEX = "OwnerIndex"

def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

# -------------------------
# DynamoDB Service
# -------------------------
class DynamoDBService:
    def __init__(self):
        session = boto3.session.Session(region_name=settings.aws_region)
        kwargs = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
        }
        if settings.aws_endpoint_url:
            kwargs["endpoint_url"] = settings.aws_endpoint_url

        self.resource = session.resource("dynamodb", **kwargs)
        self.table = self.resource.Table(settings.dynamodb_table)
        log.info("Initialized DynamoDB resource")

        # Ensure table exists at initialization
        self.ensure_table()

    # Refer here: https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/dynamodb/client/create_table.html
    def ensure_table(self):
        try:
            self.table.load()
        except ClientError:
            self.table = self.resource.create_table(
                TableName=settings.dynamodb_table,
                KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
                AttributeDefinitions=[
                    {"AttributeName": "id", "AttributeType": "S"},
                    {"AttributeName": "owner", "AttributeType": "S"},
                ],
                GlobalSecondaryIndexes=[
                    {
                        "IndexName": OWNER_INDEX,
                        "KeySchema": [{"AttributeName": "owner", "KeyType": "HASH"}],
                        "Projection": {"ProjectionType": "ALL"},
                        "ProvisionedThroughput": {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
                    }
                ],
                ProvisionedThroughput={"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
            )
            self.table.wait_until_exists()
            log.info("Created table %s", settings.dynamodb_table)

    def create_metadata(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Inserts a new item, assigning its id and timestamps."""
        timestamp = now_iso()
        item = dict(item, id=str(uuid4()), created_at=timestamp, updated_at=timestamp)
        self.table.put_item(Item=_without_none(item))
        log.debug("Inserted metadata %s", item["id"])
        return item

    def save_metadata(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Writes back a loaded item, refreshing updated_at."""
        item = dict(item, updated_at=now_iso())
        self.table.put_item(Item=_without_none(item))
        log.debug("Saved metadata %s", item["id"])
        return item

    def get_metadata(self, image_id: str) -> Optional[Dict[str, Any]]:
        resp = self.table.get_item(Key={"id": image_id})
        return resp.get("Item")

    def find_by_owner(self, owner: str) -> List[Dict[str, Any]]:
        query_kwargs = {
            "IndexName": OWNER_INDEX,
            "KeyConditionExpression": Key("owner").eq(owner),
        }
        items = []
        while True:
            resp = self.table.query(**query_kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return items
            query_kwargs["ExclusiveStartKey"] = last_key

    def delete_metadata(self, image_id: str):
        self.table.delete_item(Key={"id": image_id})
        log.debug("Deleted metadata %s", image_id)

    def close(self):
        log.info("Closed DynamoDB resource")

def _without_none(item: Dict[str, Any]) -> Dict[str, Any]:
    # Dynamo stores None as NULL, optional fields are simply left out
    return {k: v for k, v in item.items() if v is not None}
