"""Wires the scheduler's definition sync components together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from redis import Redis

from check_scheduler.alerts.repository import AlertRepository
from check_scheduler.alerts.source import HttpAlertSource
from check_scheduler.auth import FileTokenProvider, StaticTokenProvider, TokenProvider
from check_scheduler.checks.repository import CheckRepository
from check_scheduler.checks.source import HttpCheckSource
from check_scheduler.cleanup.alert_cleaner import (
    AlertChangeCleaner,
    LoggingAlertChangeCleaner,
    RedisAlertChangeCleaner,
)
from check_scheduler.cleanup.check_cleaner import CheckChangeCleaner
from check_scheduler.sync.refresher import DefinitionRefresher

if TYPE_CHECKING:
    from check_scheduler.config import AuthSettings, Settings

logger = logging.getLogger(__name__)


def build_token_provider(auth: AuthSettings) -> TokenProvider | None:
    """Create the token provider for the configured credential, if any."""
    if auth.access_token_file is not None:
        return FileTokenProvider(auth.access_token_file)
    if auth.access_token is not None:
        return StaticTokenProvider(auth.access_token.get_secret_value())
    logger.warning("No access token configured, requests are sent unauthenticated")
    return None


class Scheduler:
    """Definition sync for the scheduler: sources, repositories and cleanup.

    Example:
        ```python
        scheduler = Scheduler(get_settings())
        await scheduler.start()
        ...
        await scheduler.stop()
        ```
    """

    def __init__(
        self,
        settings: Settings,
        *,
        redis_client: Redis | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Build all components from settings.

        Args:
            settings: Application settings.
            redis_client: Redis client for alert state. Created from
                ``REDIS_URL`` if not given and a URL is configured.
            http_client: HTTP client shared by both sources. Created and
                owned by the scheduler if not given.
        """
        self.settings = settings
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client()
        self._owns_redis = False
        self._redis: Redis | None = redis_client

        token_provider = build_token_provider(settings.auth)
        self.check_source = HttpCheckSource(
            settings.check_source.name,
            settings.check_source.url,
            token_provider=token_provider,
            http_client=self._http,
        )
        self.alert_source = HttpAlertSource(
            "alerts",
            settings.alert_source.url,
            token_provider=token_provider,
            http_client=self._http,
        )

        self.alert_repository = AlertRepository(self.alert_source)
        self.check_repository = CheckRepository(self.check_source)

        self.alert_cleaner = self._build_alert_cleaner(redis_client)
        self.check_cleaner = CheckChangeCleaner(self.alert_repository, self.alert_cleaner)
        self.check_repository.register_listener(self.check_cleaner)

        self.refresher = DefinitionRefresher(
            self.alert_repository,
            self.check_repository,
            interval_seconds=settings.refresh_interval_seconds,
        )

    def _build_alert_cleaner(self, redis_client: Redis | None) -> AlertChangeCleaner:
        prefix = self.settings.redis.alert_key_prefix
        if redis_client is not None:
            return RedisAlertChangeCleaner(redis_client, key_prefix=prefix)
        if self.settings.redis.url is not None:
            logger.info("Registering Redis alert cleanup")
            self._redis = Redis.from_url(self.settings.redis.url)
            self._owns_redis = True
            return RedisAlertChangeCleaner(self._redis, key_prefix=prefix)
        return LoggingAlertChangeCleaner()

    async def start(self) -> None:
        """Load definitions and start periodic refreshing.

        Raises:
            RefreshError: If the initial load fails.
        """
        await self.refresher.start()

    async def stop(self) -> None:
        """Stop refreshing and release the clients the scheduler created."""
        await self.refresher.stop()
        if self._owns_http:
            self._http.close()
        if self._owns_redis and self._redis is not None:
            self._redis.close()
