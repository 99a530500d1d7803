"""
Shared configuration for the origin verification gate.

The edge function, the gateway authorizer and the survey API's CORS handling all derive their
allow-lists from one GateConfig value so the approved origins are defined in a single place.
"""

from __future__ import annotations

import base64
import json
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple
from urllib.parse import urlsplit

import boto3

DEFAULT_DOMAIN_NAME = "alphabetizi.ng"
DEFAULT_DEV_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"
DEFAULT_API_KEY_HEADER = "x-api-key"

_cached_api_key = None


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(x.strip().rstrip("/") for x in (raw or "").split(",") if x.strip())


def load_api_key(secrets_client=None) -> str:
    """
    Resolve the shared secret and cache it for warm invocations.

    If API_KEY_SECRET_ID is set the secret is read from Secrets Manager; it can be either a raw
    string or JSON like {"API_KEY": "..."}; a secret without a key is a deployment error.  Otherwise
    the API_KEY env var is used, and an empty one authorizes nothing.
    """
    global _cached_api_key
    if _cached_api_key:
        return _cached_api_key

    secret_id = os.environ.get("API_KEY_SECRET_ID")
    if secret_id:
        client = secrets_client or boto3.client("secretsmanager")
        resp = client.get_secret_value(SecretId=secret_id)
        if resp.get("SecretString"):
            s = resp["SecretString"]
        else:
            s = base64.b64decode(resp["SecretBinary"]).decode("utf-8")

        try:
            obj = json.loads(s)
            key = obj.get("API_KEY") or obj.get("api_key")
        except (ValueError, AttributeError):
            key = s

        if not (key or "").strip():
            raise RuntimeError("API key not found in secret")
    else:
        key = os.environ.get("API_KEY", "")

    key = (key or "").strip()
    if key:
        _cached_api_key = key
    return key


@dataclass(frozen=True)
class GateConfig:
    """
    Approved origins and the shared secret.

    Attributes:
        domain_name: Production domain; its www variant is always allowed too.
        api_key: Shared secret injected at the edge and checked by the authorizer.
        dev_origins: Local development origins (scheme://host:port, no trailing slash).
        api_key_header: Header carrying the shared secret.
    """

    domain_name: str = DEFAULT_DOMAIN_NAME
    api_key: str = field(default="", repr=False)
    dev_origins: Tuple[str, ...] = _split_csv(DEFAULT_DEV_ORIGINS)
    api_key_header: str = DEFAULT_API_KEY_HEADER

    @classmethod
    def from_env(cls, api_key: Optional[str] = None) -> "GateConfig":
        """Build the config from environment variables; the secret is loaded lazily if not given."""
        return cls(
            domain_name=os.environ.get("DOMAIN_NAME", DEFAULT_DOMAIN_NAME).strip(),
            api_key=load_api_key() if api_key is None else api_key,
            dev_origins=_split_csv(os.environ.get("DEV_ORIGINS", DEFAULT_DEV_ORIGINS)),
            api_key_header=os.environ.get("API_KEY_HEADER", DEFAULT_API_KEY_HEADER).lower(),
        )

    @property
    def production_origins(self) -> Tuple[str, ...]:
        return (f"https://{self.domain_name}", f"https://www.{self.domain_name}")

    @property
    def allowed_origins(self) -> Tuple[str, ...]:
        """CORS origins; the first entry is the fallback when the request origin is unknown."""
        return self.production_origins + self.dev_origins

    @property
    def allowed_hostnames(self) -> frozenset:
        hosts = {self.domain_name, f"www.{self.domain_name}"}
        for origin in self.dev_origins:
            host = urlsplit(origin).hostname
            if host:
                hosts.add(host)
        return frozenset(hosts)

    @property
    def allowed_referer_prefixes(self) -> Tuple[str, ...]:
        return tuple(f"{origin}/" for origin in self.allowed_origins)
