"""FinLedger financial aggregation and goal synchronization engine."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .context import create_engine_context

__all__ = ["BaseConfig", "DevConfig", "create_engine_context"]
