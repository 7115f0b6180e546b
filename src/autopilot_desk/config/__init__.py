from .settings import AlpacaConfig, AnthropicConfig, Settings, SystemConfig

__all__ = ["AlpacaConfig", "AnthropicConfig", "Settings", "SystemConfig"]
