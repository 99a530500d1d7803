"""
API Gateway REQUEST authorizer for the survey API.

Allows the call only when the shared secret stamped by the edge function matches and the Referer
is one of the approved origins.  Console test invocations are judged on the secret alone.
"""

import logging

from gate_config import GateConfig
from origin_gate import authorize, is_test_invocation, policy_document

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _get_header(event, name: str):
    h = event.get("headers") or {}
    for k, v in h.items():
        if k.lower() == name.lower():
            return v
    return ""


def lambda_handler(event, context):
    config = GateConfig.from_env()
    test_invoke = is_test_invocation(event)

    allowed = authorize(
        _get_header(event, config.api_key_header),
        _get_header(event, "referer"),
        config,
        test_invoke=test_invoke,
    )

    if not allowed:
        logger.info("Denied %s (test_invoke=%s)", event.get("methodArn"), test_invoke)

    return policy_document(allowed, event.get("methodArn", ""))
