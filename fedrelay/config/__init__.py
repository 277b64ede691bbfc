from .settings import Settings, get_config_summary, get_settings

__all__ = ["Settings", "get_settings", "get_config_summary"]
