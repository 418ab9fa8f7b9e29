"""sqlswitch – dialect-aware SQL conversion between Oracle, MySQL and PostgreSQL."""

from sqlswitch.config import config
from .utils.logger import setup_logger

__version__ = "0.1.0"

# Log once during package import so we know the package was initialised.
setup_logger('sqlswitch_init').debug('sqlswitch package initialised.')
