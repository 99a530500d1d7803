import os
import threading
from decimal import Decimal

import pytest

os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("TABLE_NAME", "record_survey_responses_test")
os.environ.setdefault("DOMAIN_NAME", "example.test")

import gate_config  # noqa: E402


class FakeTable:
    """
    In-memory stand-in for a boto3 DynamoDB Table resource.

    Only the calls the repository makes are supported.  update_item applies the increment under a
    lock, the way DynamoDB applies an update expression atomically on the server.  page_size forces
    query/scan pagination through LastEvaluatedKey.
    """

    def __init__(self, page_size=None):
        self.items = {}
        self.calls = []
        self.page_size = page_size
        self._lock = threading.Lock()

    def seed(self, question_id, option_id, count):
        self.items[(question_id, option_id)] = {
            "questionId": question_id,
            "response": option_id,
            "count": Decimal(count),
        }

    def count(self, question_id, option_id):
        item = self.items.get((question_id, option_id))
        return int(item["count"]) if item else 0

    def update_item(self, Key, UpdateExpression, ExpressionAttributeNames, ExpressionAttributeValues, ReturnValues):
        self.calls.append("update_item")
        assert "if_not_exists" in UpdateExpression
        attr = ExpressionAttributeNames["#count"]
        k = (Key["questionId"], Key["response"])
        with self._lock:
            item = self.items.setdefault(k, {"questionId": k[0], "response": k[1]})
            current = item.get(attr, Decimal(ExpressionAttributeValues[":zero"]))
            item[attr] = current + Decimal(ExpressionAttributeValues[":inc"])
            return {"Attributes": {attr: item[attr]}}

    def _page(self, items, start_key):
        start = int(start_key["offset"]) if start_key else 0
        if not self.page_size:
            return {"Items": items[start:]}
        end = start + self.page_size
        resp = {"Items": items[start:end]}
        if end < len(items):
            resp["LastEvaluatedKey"] = {"offset": end}
        return resp

    def query(self, IndexName, KeyConditionExpression, ExclusiveStartKey=None):
        self.calls.append("query")
        expr = KeyConditionExpression.get_expression()
        assert expr["operator"] == "="
        attr, value = expr["values"][0].name, expr["values"][1]
        matching = [dict(it) for k, it in sorted(self.items.items()) if it[attr] == value]
        return self._page(matching, ExclusiveStartKey)

    def scan(self, ExclusiveStartKey=None):
        self.calls.append("scan")
        return self._page([dict(it) for k, it in sorted(self.items.items())], ExclusiveStartKey)


@pytest.fixture(autouse=True)
def _reset_secret_cache(monkeypatch):
    monkeypatch.setattr(gate_config, "_cached_api_key", None)
    monkeypatch.delenv("API_KEY_SECRET_ID", raising=False)
    monkeypatch.setenv("API_KEY", "s3cret-key")


@pytest.fixture
def fake_table():
    return FakeTable()
