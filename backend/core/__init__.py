from backend.core.config import AppSettings, ConfigurationError, load_app_settings, settings

__all__ = ["AppSettings", "ConfigurationError", "load_app_settings", "settings"]
