"""
Runtime config descriptor for the static frontend.

The site bundle fetches /config.json once at load time to learn which API deployment to call, so
the same build can be pointed at different stacks.  A missing or unreadable descriptor means the
API is served from the same origin under relative paths.
"""

from __future__ import annotations

import http.client
import json
import logging
import os
import urllib.request
from dataclasses import dataclass
from typing import Optional, Dict, Any

import boto3

logger = logging.getLogger(__name__)

CONFIG_KEY = "config.json"
SURVEY_PATH = "/survey"


@dataclass(frozen=True)
class SiteConfig:
    """
    Attributes:
        api_url: Base URL of the survey API; empty means same-origin.
        site_url: Public URL of the site, when known.
    """

    api_url: str = ""
    site_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"apiUrl": self.api_url}
        if self.site_url:
            out["siteUrl"] = self.site_url
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def parse_site_config(raw) -> SiteConfig:
    """Parse a descriptor, falling back to same-origin on anything unexpected."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("config descriptor is not valid JSON; using same-origin API")
        return SiteConfig()

    if not isinstance(data, dict) or not isinstance(data.get("apiUrl"), str):
        logger.warning("config descriptor has no apiUrl; using same-origin API")
        return SiteConfig()

    site_url = data.get("siteUrl")
    return SiteConfig(
        api_url=data["apiUrl"].strip(),
        site_url=site_url if isinstance(site_url, str) and site_url else None,
    )


def fetch_site_config(url: str, timeout: int = 5) -> SiteConfig:
    """Fetch and parse the descriptor the way the frontend does on startup."""
    try:
        req = urllib.request.Request(url, headers={"Accept": "application/json"}, method="GET")
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    # OSError covers URLError, HTTPError and timeouts; ValueError a relative or scheme-less url
    except (OSError, ValueError, http.client.HTTPException) as e:
        logger.warning("Failed to load %s: %r; using same-origin API", url, e)
        return SiteConfig()
    return parse_site_config(raw)


def survey_endpoint(config: SiteConfig) -> str:
    """URL the frontend posts answers to and reads results from."""
    base = config.api_url.rstrip("/")
    return f"{base}{SURVEY_PATH}" if base else SURVEY_PATH


def publish_site_config(bucket: str, config: SiteConfig, key: str = CONFIG_KEY, s3_client=None) -> None:
    """Upload the descriptor next to the site bundle; never cached so redeploys take effect."""
    client = s3_client or boto3.client("s3")
    client.put_object(
        Bucket=bucket,
        Key=key,
        Body=config.to_json().encode("utf-8"),
        ContentType="application/json",
        CacheControl="no-cache",
    )
    logger.info("Published s3://%s/%s", bucket, key)


def config_from_env() -> SiteConfig:
    return SiteConfig(
        api_url=os.environ.get("API_URL", "").strip(),
        site_url=os.environ.get("SITE_URL", "").strip() or None,
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    cfg = config_from_env()
    with open(CONFIG_KEY, "w", encoding="utf-8") as f:
        f.write(cfg.to_json())
    logger.info("Wrote %s: %s", CONFIG_KEY, cfg.to_dict())

    bucket = os.environ.get("SITE_BUCKET")
    if bucket:
        publish_site_config(bucket, cfg)
