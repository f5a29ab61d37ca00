# Path: config/__init__.py
# Purpose: Package initializer for configuration module.
# Layer: config.
# Details: Exposes settings models for application-wide configuration.

from .settings import PROVIDER_NAMES, AppSettings, BoardSettings, GatewaySettings, LLMSettings, configure_logging

__all__ = ["AppSettings", "BoardSettings", "GatewaySettings", "LLMSettings", "PROVIDER_NAMES", "configure_logging"]
