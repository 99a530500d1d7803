"""
CloudFront viewer-request function for the survey API behaviour.

Requests whose Referer is not from an approved host are answered with a 403 at the edge.
Approved requests get the shared secret header stamped on before being forwarded to API Gateway,
which checks it again in the authorizer.
"""

import logging
import os

from gate_config import GateConfig
from origin_gate import RefererRejected, check_edge_referer, edge_forbidden_response

API_PATH_PREFIX = os.environ.get("API_PATH_PREFIX", "/survey")

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _first_header(headers: dict, name: str):
    values = headers.get(name.lower()) or []
    return values[0].get("value") if values else None


def lambda_handler(event, context):
    request = event["Records"][0]["cf"]["request"]
    headers = request.setdefault("headers", {})

    # Static assets and CORS preflight pass through untouched
    if not request.get("uri", "").startswith(API_PATH_PREFIX) or request.get("method") == "OPTIONS":
        return request

    config = GateConfig.from_env()
    referer = _first_header(headers, "referer")

    try:
        check_edge_referer(referer, config)
    except RefererRejected as e:
        logger.warning("Edge rejected %s %s: %s (referer=%r)", request.get("method"), request.get("uri"), e.message, referer)
        return edge_forbidden_response(e)

    # Overwrites anything the client sent in the same header
    headers[config.api_key_header] = [{"key": config.api_key_header, "value": config.api_key}]
    return request
