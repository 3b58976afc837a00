"""PharmaScan - browser-driven pharmacy availability scanning."""

__version__ = "0.1.0"

# Core exports
from .config import get_settings
from .main import main_api, main_worker

__all__ = ["main_worker", "main_api", "get_settings", "__version__"]
