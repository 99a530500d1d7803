import base64
import json
import logging
import os

from gate_config import GateConfig
from models import SurveyAnswer, SubmissionError, aggregate_votes
from response_repo import ResponseRepo, DEFAULT_QUESTION_INDEX

# ========= ENV =========
# Table must have PK=questionId (S), SK=response (S) and a GSI on questionId
TABLE_NAME = os.environ.get("TABLE_NAME", "record_survey_responses")
QUESTION_INDEX = os.environ.get("QUESTION_INDEX", DEFAULT_QUESTION_INDEX)

logger = logging.getLogger()
logger.setLevel(logging.INFO)

# ========= PROCESS-WIDE HANDLES =========
# Created once per cold start and only read afterwards.
repo = ResponseRepo(TABLE_NAME, question_index=QUESTION_INDEX)
gate = GateConfig.from_env(api_key="")

INTERNAL_ERROR_BODY = {"error": "Internal server error", "message": "An unexpected error occurred"}


def _get_header(event, name: str):
    h = event.get("headers") or {}
    for k, v in h.items():
        if k.lower() == name.lower():
            return v
    return ""


def _cors_allow_origin(event) -> str:
    """Echo the request origin if it's allowlisted; otherwise fall back to the production origin."""
    o = (_get_header(event, "origin") or "").strip()
    allowed = gate.allowed_origins
    return o if o in allowed else allowed[0]


def _headers(event) -> dict:
    return {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": _cors_allow_origin(event),
        "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type,Authorization",
    }


def _resp(event, status: int, body):
    return {
        "statusCode": status,
        "headers": _headers(event),
        "body": body if isinstance(body, str) else json.dumps(body),
    }


def _method(event) -> str:
    return (
        ((event.get("requestContext") or {}).get("http") or {}).get("method")
        or event.get("httpMethod")
        or ""
    ).upper()


def _raw_body(event) -> str:
    raw = event.get("body") or ""
    if raw and event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    return raw or "{}"


def handle_submit(event):
    # Malformed JSON is not caught here; it surfaces as an internal error.
    data = json.loads(_raw_body(event))
    try:
        answer = SurveyAnswer.from_body(data)
    except SubmissionError as e:
        logger.warning("Rejected submission: %s", e)
        return _resp(event, 400, {"error": str(e)})

    new_count = repo.increment_count(answer.questionId, answer.selectedOption)
    logger.info("Recorded vote %s/%s (count=%d)", answer.questionId, answer.selectedOption, new_count)
    return _resp(event, 200, {"success": True})


def handle_results(event):
    qs = event.get("queryStringParameters") or {}
    question_id = (qs.get("questionId") or "").strip()

    if question_id:
        records = repo.get_by_question(question_id)
    else:
        records = repo.get_all()

    results = aggregate_votes(records)
    logger.info(
        "Results for %s: %d records across questions %s",
        question_id or "all questions",
        len(records),
        sorted(results),
    )
    return _resp(event, 200, results)


def lambda_handler(event, context):
    method = _method(event)

    # CORS preflight
    if method == "OPTIONS":
        return _resp(event, 200, "")

    try:
        if method == "GET":
            return handle_results(event)
        if method == "POST":
            return handle_submit(event)
    except Exception:
        logger.exception("Error processing %s request", method)
        return _resp(event, 500, INTERNAL_ERROR_BODY)

    logger.warning("Unsupported HTTP method: %s", method or "<none>")
    return _resp(event, 405, {"error": "Method not allowed"})
