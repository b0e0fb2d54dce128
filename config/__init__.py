"""Configuration module for TalentTrace.

Centralized settings loaded from the environment with pydantic-settings.
"""

from config.settings import GlobalConfig, get_config

__all__ = ["GlobalConfig", "get_config"]
