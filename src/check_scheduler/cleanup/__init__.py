"""Cleanup cascade from check changes to bound alerts."""

from check_scheduler.cleanup.alert_cleaner import (
    AlertChangeCleaner,
    LoggingAlertChangeCleaner,
    RedisAlertChangeCleaner,
)
from check_scheduler.cleanup.check_cleaner import CheckChangeCleaner

__all__ = [
    "AlertChangeCleaner",
    "CheckChangeCleaner",
    "LoggingAlertChangeCleaner",
    "RedisAlertChangeCleaner",
]
