import os

import boto3
from botocore.exceptions import ClientError

# === CONFIG ===
REGION = os.environ.get("AWS_REGION", "us-east-1")
TABLE_NAME = os.environ.get("TABLE_NAME", "record_survey_responses")
QUESTION_INDEX = os.environ.get("QUESTION_INDEX", "QuestionIndex")
# Point at DynamoDB Local, e.g. http://localhost:8000
ENDPOINT_URL = os.environ.get("DYNAMODB_ENDPOINT_URL")


def table_definition(table_name: str = TABLE_NAME, index_name: str = QUESTION_INDEX) -> dict:
    """PK=questionId, SK=response, plus a GSI on questionId for per-question reads."""
    return {
        "TableName": table_name,
        "AttributeDefinitions": [
            {"AttributeName": "questionId", "AttributeType": "S"},
            {"AttributeName": "response", "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": "questionId", "KeyType": "HASH"},
            {"AttributeName": "response", "KeyType": "RANGE"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": index_name,
                "KeySchema": [{"AttributeName": "questionId", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }


def create_table(client=None) -> bool:
    """Create the survey table if missing. Returns True if created, False if it already existed."""
    client = client or boto3.client("dynamodb", region_name=REGION, endpoint_url=ENDPOINT_URL)
    try:
        client.create_table(**table_definition())
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceInUseException":
            raise
        print(f"Table {TABLE_NAME} already exists")
        return False

    client.get_waiter("table_exists").wait(TableName=TABLE_NAME)
    print(f"Created table {TABLE_NAME} with index {QUESTION_INDEX}")
    return True


if __name__ == "__main__":
    create_table()
