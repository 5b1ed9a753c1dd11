from .logger import configure_library_logging

__all__ = ["configure_library_logging"]
