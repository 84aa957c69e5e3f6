"""Alert-side cleanup when an alert's inputs change."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from redis import Redis

    from check_scheduler.alerts.models import AlertDefinition

logger = logging.getLogger(__name__)

DEFAULT_ALERT_KEY_PREFIX = "scheduler:alerts:"


class AlertChangeCleaner(Protocol):
    """Cleans up or re-evaluates the state of a single alert."""

    def notify_alert_change(self, alert: AlertDefinition) -> None:
        """Handle a change affecting the given alert."""
        ...


class RedisAlertChangeCleaner:
    """Removes an alert's runtime state from Redis.

    Alert state is stored under ``{prefix}{alert_id}`` with per-entity
    sub keys ``{prefix}{alert_id}:...``. All of them are deleted so the
    alert is evaluated from scratch against its current entities.
    """

    def __init__(self, redis: Redis, *, key_prefix: str = DEFAULT_ALERT_KEY_PREFIX) -> None:
        """Initialize the cleaner.

        Args:
            redis: Synchronous Redis client.
            key_prefix: Prefix of alert state keys.
        """
        self.redis = redis
        self.key_prefix = key_prefix

    def alert_key(self, alert_id: int) -> str:
        """Return the root state key of an alert."""
        return f"{self.key_prefix}{alert_id}"

    def notify_alert_change(self, alert: AlertDefinition) -> None:
        root = self.alert_key(alert.id)
        keys = [root, *self.redis.scan_iter(match=f"{root}:*", count=100)]
        deleted = self.redis.delete(*keys)
        logger.info("Cleaned up alert %d state (%d keys removed)", alert.id, int(deleted))


class LoggingAlertChangeCleaner:
    """Cleaner used when no state store is configured; only logs changes."""

    def notify_alert_change(self, alert: AlertDefinition) -> None:
        logger.info(
            "Alert %d (%s) affected by change of check %d",
            alert.id,
            alert.name,
            alert.check_definition_id,
        )
