from .loader import ConfigError, LoaderConfig, load_config

__all__ = ["ConfigError", "LoaderConfig", "load_config"]
