import threading
from typing import Any, Callable, Dict


class ServiceContainer:
    """A tiny, explicit DI container for registering singletons and factories.

    Register by key (string) and resolve via `get`. Factories are evaluated
    once and their result cached as singletons; resolution is serialized so
    concurrent first access still builds a single instance.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._lock = threading.RLock()

    def register_singleton(self, key: str, instance: Any) -> None:
        with self._lock:
            self._singletons[key] = instance

    def register_factory(self, key: str, factory: Callable[[], Any]) -> None:
        with self._lock:
            self._factories[key] = factory

    def get(self, key: str) -> Any:
        with self._lock:
            if key in self._singletons:
                return self._singletons[key]
            if key in self._factories:
                inst = self._factories[key]()
                self._singletons[key] = inst
                return inst
        raise KeyError(f"No service registered for key '{key}'")

    def resolved(self, key: str) -> bool:
        """Return True if `key` has been instantiated (not just registered)."""
        with self._lock:
            return key in self._singletons
