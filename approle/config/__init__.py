"""Configuration module for the app role assignment tooling."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
