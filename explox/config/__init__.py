"""Runtime configuration."""

from explox.config.settings import GenerationSettings, load_settings

__all__ = ["GenerationSettings", "load_settings"]
