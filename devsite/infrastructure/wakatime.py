"""Integration with the WakaTime HTTP API."""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx

from devsite.core.errors import UpstreamError
from devsite.core.schema import TokenGrant, WakatimeConfig

logger = logging.getLogger(__name__)


class WakatimeClient:
    """Client for token refresh and per-project coding statistics."""

    def __init__(
        self,
        *,
        api_base: str = "https://wakatime.com/api/v1",
        redirect_uri: str = "https://qat.dev",
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        self._api_base = api_base.rstrip("/")
        self._redirect_uri = redirect_uri
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _parse_grant(response: httpx.Response) -> dict[str, str]:
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                data = response.json()
            except ValueError as exc:
                raise UpstreamError("Invalid token refresh response") from exc
            if not isinstance(data, dict):
                raise UpstreamError("Invalid token refresh response")
            return {key: str(value) for key, value in data.items() if value is not None}

        # form-encoded: access_token=...&refresh_token=...&expires_at=...
        parsed = parse_qs(response.text, keep_blank_values=True, strict_parsing=False)
        if not parsed:
            raise UpstreamError("Error while parsing the response for refreshing the token")
        return {key: values[0] for key, values in parsed.items() if values}

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def refresh_token(self, config: WakatimeConfig) -> TokenGrant:
        if not config.refresh_url:
            raise UpstreamError("No token refresh URL configured")

        form = {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "redirect_uri": self._redirect_uri,
            "refresh_token": config.refresh_token,
            "grant_type": "refresh_token",
        }
        try:
            response = self._client.post(config.refresh_url, data=form)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Error occurred while refreshing the token: {exc}") from exc

        fields = self._parse_grant(response)
        access_token = fields.get("access_token")
        if not access_token:
            raise UpstreamError("Token refresh response did not include an access token")

        return TokenGrant(
            access_token=access_token,
            refresh_token=fields.get("refresh_token") or config.refresh_token,
            expires_at=fields.get("expires_at") or "",
        )

    def project_stats(self, access_token: str, project: str) -> dict[str, Any]:
        url = f"{self._api_base}/users/current/all_time_since_today"
        try:
            response = self._client.get(
                url,
                params={"project": project},
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            logger.error("Stats request for project %s failed: %s", project, exc)
            raise UpstreamError(f"error making request for stats of the {project} project") from exc
        except ValueError as exc:
            logger.error("Stats response for project %s is not JSON", project)
            raise UpstreamError(f"error decoding stats of the {project} project") from exc

        if not isinstance(payload, dict):
            raise UpstreamError(f"error decoding stats of the {project} project")
        return payload

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


__all__ = ["WakatimeClient"]
