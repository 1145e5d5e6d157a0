from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, PlatformConfig

__all__ = ["AppConfig", "EnvOverrides", "PlatformConfig", "load_config"]
