import importlib.util
from pathlib import Path

_module_path = Path(__file__).resolve().parents[1] / "lambda" / "authorizer.py"
_spec = importlib.util.spec_from_file_location("authorizer", _module_path)
_mod = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(_mod)

METHOD_ARN = "arn:aws:execute-api:us-east-1:123456789012:abcdef/prod/POST/survey"


def _event(api_key=None, referer=None, stage="prod"):
    headers = {}
    if api_key is not None:
        headers["X-Api-Key"] = api_key
    if referer is not None:
        headers["Referer"] = referer
    return {
        "type": "REQUEST",
        "methodArn": METHOD_ARN,
        "headers": headers,
        "requestContext": {"stage": stage},
    }


def _effect(policy):
    return policy["policyDocument"]["Statement"][0]["Effect"]


def test_allows_secret_and_approved_referer():
    policy = _mod.lambda_handler(_event("s3cret-key", "https://example.test/page"), None)
    assert _effect(policy) == "Allow"
    assert policy["policyDocument"]["Statement"][0]["Resource"] == METHOD_ARN


def test_denies_wrong_secret_regardless_of_referer():
    policy = _mod.lambda_handler(_event("wrong", "https://example.test/page"), None)
    assert _effect(policy) == "Deny"


def test_deny_does_not_reveal_failing_factor():
    bad_key = _mod.lambda_handler(_event("wrong", "https://example.test/page"), None)
    bad_referer = _mod.lambda_handler(_event("s3cret-key", "https://elsewhere.test/"), None)
    missing_all = _mod.lambda_handler(_event(), None)
    assert bad_key == bad_referer == missing_all


def test_test_invocation_bypasses_referer():
    policy = _mod.lambda_handler(_event("s3cret-key", None, stage="ESTestInvoke"), None)
    assert _effect(policy) == "Allow"

    policy = _mod.lambda_handler(_event("wrong", "https://example.test/", stage="ESTestInvoke"), None)
    assert _effect(policy) == "Deny"


def test_unset_secret_denies_everything(monkeypatch):
    monkeypatch.setenv("API_KEY", "")
    policy = _mod.lambda_handler(_event("", "https://example.test/page", stage="ESTestInvoke"), None)
    assert _effect(policy) == "Deny"
