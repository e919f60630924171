from .logging import LoggingConfig

__all__ = ["LoggingConfig"]
