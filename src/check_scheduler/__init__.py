"""Check Scheduler - keeps check and alert definitions in sync with their authority."""

__version__ = "0.1.0"
