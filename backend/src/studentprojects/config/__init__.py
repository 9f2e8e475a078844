from .settings import Settings, SettingsError

__all__ = ["Settings", "SettingsError"]
