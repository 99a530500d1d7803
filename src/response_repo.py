"""
DynamoDB repository for survey vote counters.

Each item holds the running count for one (questionId, response) pair.  Votes are recorded with a
single conditional-increment UpdateItem so concurrent submissions for the same option are never
lost, and reads go through the question GSI or a full table scan.
"""

from __future__ import annotations

import logging
from typing import Optional, Dict, Any, List

import boto3
from boto3.dynamodb.conditions import Key

from models import VoteRecord

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_INDEX = "QuestionIndex"

INCREMENT_EXPRESSION = "SET #count = if_not_exists(#count, :zero) + :inc"


class ResponseRepo:
    """Repository for vote counters stored in DynamoDB."""

    def __init__(
        self,
        table_name: str,
        question_index: str = DEFAULT_QUESTION_INDEX,
        table: Optional[Any] = None,
    ) -> None:
        if not table_name:
            raise RuntimeError("TABLE_NAME is not set")
        self.table_name = table_name
        self.question_index = question_index
        self.table = table if table is not None else boto3.resource("dynamodb").Table(table_name)

    def increment_count(self, question_id: str, option_id: str) -> int:
        """
        Atomically add one vote for an option, creating the counter at zero if absent.

        Args:
            question_id: The question being answered.
            option_id: The chosen option.
        Returns:
            The count after the increment.
        Raises:
            ClientError: For any DynamoDB failure.
        """
        resp = self.table.update_item(
            Key={"questionId": question_id, "response": option_id},
            UpdateExpression=INCREMENT_EXPRESSION,
            ExpressionAttributeNames={"#count": "count"},
            ExpressionAttributeValues={":zero": 0, ":inc": 1},
            ReturnValues="UPDATED_NEW",
        )
        new_count = int(resp.get("Attributes", {}).get("count", 0))
        logger.debug("incremented %s/%s to %d", question_id, option_id, new_count)
        return new_count

    def get_by_question(self, question_id: str) -> List[VoteRecord]:
        """Fetch every option counter for one question via the question GSI."""
        query_kwargs: Dict[str, Any] = {
            "IndexName": self.question_index,
            "KeyConditionExpression": Key("questionId").eq(question_id),
        }
        resp = self.table.query(**query_kwargs)
        items = resp.get("Items", [])
        while "LastEvaluatedKey" in resp:
            resp = self.table.query(ExclusiveStartKey=resp["LastEvaluatedKey"], **query_kwargs)
            items.extend(resp.get("Items", []))
        return [VoteRecord.from_item(it) for it in items]

    def get_all(self) -> List[VoteRecord]:
        """
        Fetch every counter in the table.

        This is a full scan; it is only used for the all-results read path.
        """
        resp = self.table.scan()
        items = resp.get("Items", [])
        while "LastEvaluatedKey" in resp:
            resp = self.table.scan(ExclusiveStartKey=resp["LastEvaluatedKey"])
            items.extend(resp.get("Items", []))
        return [VoteRecord.from_item(it) for it in items]
