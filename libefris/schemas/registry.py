import logging
from collections.abc import Iterable, Iterator
from functools import lru_cache

from ..errors import UnknownInterfaceError
from .interfaces import DESCRIPTORS
from .rules import Direction, SchemaDescriptor

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Schemas keyed by ``(interfaceCode, direction)``.

    Request and response tables of the same interface differ (a request must
    leave ``invoiceNo`` empty, the response fills it), so both halves of the key
    are required for a lookup. Once :meth:`freeze` is called the registry is
    read-only and can be shared between threads without locking.
    """

    def __init__(self, descriptors: Iterable[SchemaDescriptor] = ()):
        self._schemas: dict[tuple[str, Direction], SchemaDescriptor] = {}
        self._frozen = False
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: SchemaDescriptor) -> None:
        if self._frozen:
            raise RuntimeError("The schema registry is read-only")
        if descriptor.key in self._schemas:
            raise ValueError(f"Schema already registered for {descriptor.interface_code} ({descriptor.direction.value})")
        self._schemas[descriptor.key] = descriptor
        logger.debug("registered schema %s/%s", descriptor.interface_code, descriptor.direction.value)

    def freeze(self) -> "SchemaRegistry":
        self._frozen = True
        return self

    def lookup(self, interface_code: str, direction: Direction | str) -> SchemaDescriptor:
        try:
            key = (interface_code, Direction(direction))
        except ValueError:
            raise UnknownInterfaceError(interface_code, str(direction)) from None
        try:
            return self._schemas[key]
        except KeyError:
            raise UnknownInterfaceError(interface_code, key[1].value) from None

    def interfaces(self) -> list[str]:
        return sorted({code for code, _ in self._schemas})

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        code, direction = key
        try:
            return (code, Direction(direction)) in self._schemas
        except ValueError:
            return False

    def __iter__(self) -> Iterator[SchemaDescriptor]:
        return iter(sorted(self._schemas.values(), key=lambda d: (d.interface_code, d.direction.value)))

    def __len__(self) -> int:
        return len(self._schemas)


@lru_cache(maxsize=1)
def default_registry() -> SchemaRegistry:
    """Registry of every interface this library knows, built once."""
    return SchemaRegistry(DESCRIPTORS).freeze()
