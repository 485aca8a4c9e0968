"""Validation scheduling service."""

from tactls.service.scheduler import ValidationScheduler

__all__ = ["ValidationScheduler"]
