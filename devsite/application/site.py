"""Application service layer for releases, commits and project statistics."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from devsite.core.config import Settings
from devsite.core.errors import NotConfirmed, NotFound, StoreError
from devsite.core.gate import confirm, decode_body
from devsite.core.schema import (
    DownloadedReleaseBody,
    PushedCommitsBody,
    Release,
    ServerConfig,
    TokenGrant,
)
from devsite.infrastructure import InMemorySiteRepository, SiteRepository, WakatimeClient

logger = logging.getLogger(__name__)


class SiteService:
    """Coordinates the site's simple data-access use cases."""

    STATS_PROJECTS: dict[str, str] = {
        "compiler": "qat",
        "website": "qatdev",
        "server": "QatDevServer",
        "vscode": "qat_vscode",
        "docs": "QatDocs",
    }

    def __init__(
        self,
        repository: SiteRepository,
        settings: Settings,
        *,
        wakatime: WakatimeClient | None = None,
    ) -> None:
        self._repository = repository
        self._settings = settings
        self._wakatime = wakatime

    @property
    def repository(self) -> SiteRepository:
        return self._repository

    # ------------------------------------------------------------------
    # releases
    # ------------------------------------------------------------------
    def list_releases(self) -> dict[str, list[dict[str, Any]]]:
        releases: list[dict[str, Any]] = []
        for record in self._repository.list_releases():
            try:
                release = Release.model_validate(record)
            except ValidationError as exc:
                logger.warning("Skipping undecodable release record: %s", exc.errors(include_url=False))
                continue
            releases.append(release.model_dump(by_alias=True))
        return {"releases": releases}

    def release_count(self) -> dict[str, int]:
        return {"count": self._repository.count_releases()}

    def record_download(self, payload: Any) -> str:
        body = decode_body(payload, DownloadedReleaseBody)
        confirm(body.confirmation_key, self._settings.confirmation_key, error=NotConfirmed)

        record = self._repository.find_release(body.release_id)
        if record is None:
            logger.warning("No release found with ID %s", body.release_id)
            raise NotFound("No release found with ID")

        files = record.get("files") or []
        index = next(
            (i for i, item in enumerate(files) if item.get("id") == body.platform_id),
            None,
        )
        if index is None:
            logger.warning("Platform %s not found in release %s", body.platform_id, body.release_id)
            raise NotFound("Platform not found")

        if not self._repository.increment_download(body.release_id, index):
            logger.error("Could not update release %s", body.release_id)
            raise StoreError("Could not update release")
        return "Updated release file download count successfully"

    # ------------------------------------------------------------------
    # commits
    # ------------------------------------------------------------------
    def add_commits(self, payload: Any) -> str:
        body = decode_body(payload, PushedCommitsBody)
        confirm(body.confirmation_key, self._settings.confirmation_key, error=NotConfirmed)

        records = [commit.model_dump(by_alias=True, exclude_none=True) for commit in body.commits]
        if records:
            self._repository.insert_commits(records)
        logger.info("Stored %d pushed commits", len(records))
        return "Added commits successfully"

    def latest_commit(self) -> dict[str, Any]:
        return self._repository.latest_commit() or {}

    # ------------------------------------------------------------------
    # project statistics
    # ------------------------------------------------------------------
    def _server_config(self) -> ServerConfig:
        record = self._repository.get_config()
        if record is None:
            raise StoreError("Could not retrieve server config")
        try:
            return ServerConfig.model_validate(record)
        except ValidationError as exc:
            raise StoreError("Could not decode server config") from exc

    def _client(self) -> WakatimeClient:
        if self._wakatime is None:
            self._wakatime = WakatimeClient(
                api_base=self._settings.wakatime_api_base,
                redirect_uri=self._settings.wakatime_redirect_uri,
            )
        return self._wakatime

    def project_stats(self) -> dict[str, dict[str, Any]]:
        config = self._server_config()
        client = self._client()
        return {
            key: client.project_stats(config.wakatime.access_token, project)
            for key, project in self.STATS_PROJECTS.items()
        }

    # ------------------------------------------------------------------
    # token refresh
    # ------------------------------------------------------------------
    @staticmethod
    def _parse_expiry(value: str) -> datetime | None:
        raw = value.strip()
        if not raw:
            return None
        if raw.endswith("Z"):
            raw = f"{raw[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def refresh_token_if_due(self, now: datetime | None = None) -> TokenGrant | None:
        """Refresh the WakaTime token when it expires within the threshold.

        Returns the persisted grant, or ``None`` when the token is still fresh.
        An unparseable expiry counts as due.
        """

        config = self._server_config()
        now = now or datetime.now(timezone.utc)
        expiry = self._parse_expiry(config.wakatime.expires_at)
        threshold = timedelta(seconds=self._settings.token_refresh_threshold)
        if expiry is not None and expiry - now >= threshold:
            logger.debug("Token valid until %s, refresh not needed", expiry.isoformat())
            return None

        grant = self._client().refresh_token(config.wakatime)
        updated = self._repository.update_config(
            {
                "wakatime.accessToken": grant.access_token,
                "wakatime.refreshToken": grant.refresh_token,
                "wakatime.expiresAt": grant.expires_at,
            }
        )
        if not updated:
            raise StoreError("Updating token configuration failed")
        logger.info("Refreshed token, new expiry %s", grant.expires_at or "unknown")
        return grant


_repository: SiteRepository = InMemorySiteRepository()
_service: SiteService | None = None


def get_site_repository() -> SiteRepository:
    """Return the process-wide repository backing the site service."""

    return _repository


def configure_site_service(service: SiteService) -> None:
    global _service
    _service = service


def get_site_service() -> SiteService:
    if _service is None:
        raise RuntimeError("site service has not been configured")
    return _service


def reset_site_state() -> None:
    """Reset the in-memory store (used in tests)."""

    _repository.reset()
