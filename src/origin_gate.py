"""
Request-origin verification.

Two checks guard the survey API from direct, non-browser access:

  - the edge check runs at the CDN: it only admits requests whose Referer hostname is approved
    and stamps the shared secret onto the forwarded request;
  - the gateway check runs in the API Gateway authorizer: it requires the shared secret and,
    again, an approved Referer prefix.  Console test invocations are judged on the secret alone.

Both take their allow-lists from the same GateConfig.
"""

from __future__ import annotations

import hmac
import json
import logging
from typing import Optional, Dict, Any
from urllib.parse import urlsplit

from gate_config import GateConfig

logger = logging.getLogger(__name__)

TEST_INVOKE_STAGE_MARKER = "ESTestInvoke"


class RefererRejected(Exception):
    """Raised by the edge check; carries the structured 403 body."""

    def __init__(self, message: str, referer: Optional[str]) -> None:
        super().__init__(message)
        self.message = message
        self.referer = referer

    def to_body(self) -> Dict[str, str]:
        return {
            "error": "Access denied",
            "message": self.message,
            "referer": self.referer or "none",
        }


def _referer_hostname(referer: Optional[str]) -> Optional[str]:
    """Return the hostname of an absolute URL, or None if it does not parse as one."""
    if not referer:
        return None
    try:
        parts = urlsplit(referer.strip())
        host = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not host:
        return None
    return host


def check_edge_referer(referer: Optional[str], config: GateConfig) -> None:
    """
    Admit a request at the edge based only on its Referer hostname.

    Raises:
        RefererRejected: If the referer is missing, malformed, or from an unapproved host.
    """
    host = _referer_hostname(referer)
    if host is None:
        raise RefererRejected("Invalid referer format", referer)
    if host not in config.allowed_hostnames:
        raise RefererRejected(f"Request must come from {config.domain_name}", referer)


def edge_forbidden_response(rejection: RefererRejected) -> Dict[str, Any]:
    """CloudFront generated-response for a rejected request."""
    return {
        "status": "403",
        "statusDescription": "Forbidden",
        "headers": {
            "content-type": [{"key": "Content-Type", "value": "application/json"}],
            "cache-control": [{"key": "Cache-Control", "value": "no-store"}],
        },
        "body": json.dumps(rejection.to_body()),
    }


def is_valid_referer(referer: Optional[str], config: GateConfig) -> bool:
    return bool(referer) and referer.startswith(config.allowed_referer_prefixes)


def secret_matches(presented: Optional[str], config: GateConfig) -> bool:
    """Constant-time comparison; an unset secret on either side never matches."""
    if not presented or not config.api_key:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), config.api_key.encode("utf-8"))


def authorize(
    presented_key: Optional[str],
    referer: Optional[str],
    config: GateConfig,
    test_invoke: bool = False,
) -> bool:
    """
    Gateway decision: shared secret AND approved referer.

    Test-harness invocations skip the referer check and depend on the secret only.
    """
    key_ok = secret_matches(presented_key, config)
    if test_invoke:
        logger.debug("test invocation: authorized=%s", key_ok)
        return key_ok

    referer_ok = is_valid_referer(referer, config)
    logger.debug("referer=%r valid_referer=%s valid_key=%s", referer, referer_ok, key_ok)
    return key_ok and referer_ok


def is_test_invocation(event: Dict[str, Any]) -> bool:
    stage = (event.get("requestContext") or {}).get("stage") or ""
    return TEST_INVOKE_STAGE_MARKER in stage


def policy_document(allow: bool, method_arn: str, principal_id: str = "user") -> Dict[str, Any]:
    """IAM policy returned by the authorizer; a deny looks the same whichever check failed."""
    return {
        "principalId": principal_id,
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": "Allow" if allow else "Deny",
                    "Resource": method_arn,
                }
            ],
        },
    }
