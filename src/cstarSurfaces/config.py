'''Configuration of the cstarSurfaces package.'''

import logging
import os
from dataclasses import dataclass


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class Config:
    '''Package-wide settings.

    ``cache_size`` bounds the memoisation of intersection matrices, resolutions
    and normal forms (``None`` means unbounded). The separators define the
    plain-text interchange format ``case;block sizes;rays``.
    '''

    cache_size: int | None = 1024
    log_level: str = "WARNING"
    field_separator: str = ";"
    value_separator: str = ","

    def validate(self) -> None:
        '''Validate configuration values.'''
        if self.cache_size is not None and self.cache_size < 0:
            raise ValueError("cache_size must be >= 0 or None")
        if self.log_level.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_VALID_LOG_LEVELS}")
        if not self.field_separator or not self.value_separator:
            raise ValueError("separators must be non-empty")
        if self.field_separator == self.value_separator:
            raise ValueError("field_separator and value_separator must differ")
        if "-" in self.field_separator + self.value_separator:
            raise ValueError("separators must not contain '-'")

    def to_dict(self) -> dict[str, object]:
        return {
            "cache_size": self.cache_size,
            "log_level": self.log_level,
            "field_separator": self.field_separator,
            "value_separator": self.value_separator,
        }

    @classmethod
    def from_env(cls, environ=None) -> "Config":
        '''
        read the settings from ``CSTAR_SURFACES_*`` environment variables, falling back to the defaults
        '''
        environ = os.environ if environ is None else environ
        config = cls()
        cache_size = environ.get("CSTAR_SURFACES_CACHE_SIZE")
        if cache_size is not None:
            config.cache_size = None if cache_size.lower() in ("", "none") else int(cache_size)
        config.log_level = environ.get("CSTAR_SURFACES_LOG_LEVEL", config.log_level).upper()
        config.validate()
        return config


CONFIG = Config.from_env()


def configure_logging(config: Config = CONFIG) -> logging.Logger:
    '''
    set the level of the package logger; handlers are left to the application
    '''
    config.validate()
    logger = logging.getLogger("cstarSurfaces")
    logger.setLevel(config.log_level.upper())
    return logger
