"""Scheduling helpers."""

from erp_client.infrastructure.scheduling.debounce import Debouncer

__all__ = ["Debouncer"]
