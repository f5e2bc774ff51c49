"""
Services package.
"""

from .config_svc import ConfigService
from .eyeball_svc import EyeballService

__all__ = ["ConfigService", "EyeballService"]
