"""
Configuration module - pydantic-settings base class shared by the services.
"""

from common.config.base_settings import BaseAppSettings

__all__ = ["BaseAppSettings"]
