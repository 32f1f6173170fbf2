"""Concurrent execution of scenario ranges."""

from __future__ import annotations

from .pool import ScenarioPool

__all__ = ["ScenarioPool"]
