"""
Catalog Backends
================
Common interface for catalog backends and the registry that holds them.

A backend answers a small closed set of commands:

    name            display name of the catalog
    prompt          prompt string shown when asking for a query
    url             request URL for a query
    parse-buffer    records parsed from a response body
    forward-bibtex  BibTeX for one record, delivered to a sink
    register        add the backend to a BackendRegistry

`CatalogBackend.dispatch` maps those tags to methods so a host application
can drive heterogeneous backends through one entry point.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from loguru import logger


# A sink receives one finished BibTeX entry
Sink = Callable[[str], None]


class UnknownBackendCommand(KeyError):
    pass


class BackendNotFoundError(KeyError):
    pass


class CatalogBackend(ABC):
    """Base class for catalog backends."""

    COMMANDS: Dict[str, str] = {
        "name": "name",
        "prompt": "prompt",
        "url": "url",
        "parse-buffer": "parse_buffer",
        "forward-bibtex": "forward_bibtex",
        "register": "register",
    }

    @abstractmethod
    def name(self) -> str:
        """Display name of the catalog."""

    @abstractmethod
    def prompt(self) -> str:
        """Prompt shown when asking the user for a query."""

    @abstractmethod
    def url(self, query: str) -> str:
        """Build the request URL for `query`."""

    @abstractmethod
    def parse_buffer(self, body: Any) -> Sequence[Any]:
        """Parse a response body into records."""

    @abstractmethod
    def forward_bibtex(self, record: Any, forward_to: Sink) -> None:
        """Deliver the BibTeX entry for `record` to `forward_to`."""

    def register(self, registry: "BackendRegistry") -> None:
        """Add this backend to `registry`; repeated calls are no-ops."""
        registry.register(self)

    def dispatch(self, command: str, *args: Any) -> Any:
        """Run a command by tag.

        Raises:
            UnknownBackendCommand: If `command` is not one of COMMANDS.
        """
        method_name = self.COMMANDS.get(command)
        if method_name is None:
            raise UnknownBackendCommand(command)
        return getattr(self, method_name)(*args)


class BackendRegistry:
    """
    Registry of catalog backends keyed by display name.

    Provides:
    - Idempotent registration
    - Lookup by name
    - Command dispatch to a named backend
    """

    def __init__(self) -> None:
        self._backends: Dict[str, CatalogBackend] = {}

    def register(self, backend: CatalogBackend) -> bool:
        """Add a backend.

        Returns:
            True if the backend was added, False if it was already present.
        """
        name = backend.name()
        if name in self._backends:
            logger.debug(f"Backend {name!r} already registered")
            return False
        self._backends[name] = backend
        logger.debug(f"Registered backend {name!r}")
        return True

    def get(self, name: str) -> Optional[CatalogBackend]:
        """Get backend by name."""
        return self._backends.get(name)

    def names(self) -> List[str]:
        """Registered backend names, in registration order."""
        return list(self._backends.keys())

    def dispatch(self, name: str, command: str, *args: Any) -> Any:
        """Run `command` on the backend registered as `name`."""
        backend = self.get(name)
        if backend is None:
            raise BackendNotFoundError(name)
        return backend.dispatch(command, *args)

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def __len__(self) -> int:
        return len(self._backends)

    def __iter__(self) -> Iterator[CatalogBackend]:
        return iter(list(self._backends.values()))
