"""Services package: DI container for the storage composition root."""
from .container import ServiceContainer

__all__ = ["ServiceContainer"]
