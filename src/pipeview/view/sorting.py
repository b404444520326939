"""Pluggable component ordering."""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable

from .config import NONE_SORTER, normalize_sorting
from .model import Component
from .protocol import Comparator, ComparatorLookup


@dataclass(frozen=True)
class ComparatorDescriptor:
    id: str
    display_name: str
    factory: Callable[[], Comparator]

    def create_instance(self) -> Comparator:
        return self.factory()


class ComparatorRegistry:
    """Registered component comparators, looked up by id."""

    def __init__(self, descriptors: list[ComparatorDescriptor] | None = None):
        self._descriptors: dict[str, ComparatorDescriptor] = {}
        for d in descriptors or []:
            self.register(d)

    def register(self, descriptor: ComparatorDescriptor) -> None:
        if descriptor.id == NONE_SORTER:
            raise ValueError(f"'{NONE_SORTER}' is reserved for unsorted views")
        self._descriptors[descriptor.id] = descriptor

    def find(self, sorter_id: str) -> ComparatorDescriptor | None:
        return self._descriptors.get(sorter_id)

    def all(self) -> list[ComparatorDescriptor]:
        return list(self._descriptors.values())


def sorting_options(registry: ComparatorRegistry) -> list[tuple[str, str]]:
    options = [("None", NONE_SORTER)]
    for d in registry.all():
        options.append((d.display_name, d.id))
    return options


def sort_components(components: list[Component], sorting: str | None,
                    registry: ComparatorLookup) -> list[Component]:
    """Sort in place with the comparator registered under ``sorting``.

    Unknown ids leave the list in assembly order.
    """
    sorting = normalize_sorting(sorting)
    if not sorting or sorting == NONE_SORTER:
        return components
    descriptor = registry.find(sorting)
    if descriptor is not None:
        components.sort(key=cmp_to_key(descriptor.create_instance()))
    return components
