"""Discovery of the concrete classes that may carry wiring markers.

The universe is either scanned from the loaded modules, filtered by a
:class:`ModuleFilter`, or built from an explicit manifest of classes. Either
way it is computed once and is immutable afterwards.
"""

import inspect
import logging
import sys
from collections.abc import Iterable, Iterator, Sequence
from types import ModuleType
from typing import Optional, overload

from bindery.options import BinderyOptions

__all__ = ["ModuleFilter", "TypeUniverse"]

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_MODULES = (
    "builtins",
    "pip",
    "setuptools",
    "pkg_resources",
    "packaging",
    "importlib_metadata",
    "zipp",
    "typing_extensions",
    "annotated_types",
    "pydantic",
    "pydantic_core",
    "pydantic_settings",
    "dotenv",
    "pytest",
    "_pytest",
    "pluggy",
    "iniconfig",
    "pytest_asyncio",
    "hypothesis",
    "sortedcontainers",
    "attr",
    "attrs",
    "bindery",
)


class ModuleFilter:
    """Policy deciding which modules the type scan inspects.

    Names are matched by dotted prefix: the prefix ``"pydantic"`` rejects
    ``pydantic`` and ``pydantic.fields`` but not ``pydantic_extra``. Top-level
    modules whose name starts with an underscore, other than ``__main__``, are
    always rejected.

    Args:
        excluded: Extra prefixes to reject, in addition to the defaults.
        included: If given, only modules matching one of these prefixes are accepted.
        exclude_stdlib: Reject standard library modules.
    """

    def __init__(
        self,
        excluded: Iterable[str] = (),
        included: Optional[Iterable[str]] = None,
        exclude_stdlib: bool = True,
    ):
        self._excluded = DEFAULT_EXCLUDED_MODULES + tuple(excluded)
        self._included = tuple(included) if included is not None else None
        self._exclude_stdlib = exclude_stdlib

    @classmethod
    def from_options(cls, options: BinderyOptions) -> "ModuleFilter":
        return cls(excluded=options.excluded_modules)

    def accepts(self, module_name: str) -> bool:
        top_level = module_name.partition(".")[0]
        if module_name != "__main__":
            if top_level.startswith("_"):
                return False
            if self._exclude_stdlib and top_level in sys.stdlib_module_names:
                return False
        if any(_matches(module_name, prefix) for prefix in self._excluded):
            return False
        if self._included is not None:
            return any(_matches(module_name, prefix) for prefix in self._included)
        return True


def _matches(module_name: str, prefix: str) -> bool:
    return module_name == prefix or module_name.startswith(prefix + ".")


class TypeUniverse(Sequence):
    """An immutable, indexable sequence of concrete classes.

    The order is module order, then declaration order within each module. It
    carries no further meaning and consumers should treat it as opaque.
    """

    def __init__(self, types: Iterable[type] = ()):
        seen: dict[type, None] = {}
        for concrete_type in types:
            if not isinstance(concrete_type, type):
                raise TypeError(f"{concrete_type!r} is not a class")
            seen.setdefault(concrete_type)
        self._types = tuple(seen)

    @classmethod
    def scan(
        cls,
        module_filter: Optional[ModuleFilter] = None,
        modules: Optional[Iterable[ModuleType]] = None,
        options: Optional[BinderyOptions] = None,
    ) -> "TypeUniverse":
        """Collect the concrete classes of every module accepted by the filter.

        Args:
            module_filter: The policy to apply; defaults to one built from `options`.
            modules: Modules to inspect; defaults to a snapshot of ``sys.modules``.
            options: Diagnostic options controlling per-module logging.

        Returns:
            The resulting universe.
        """
        options = options or BinderyOptions()
        module_filter = module_filter or ModuleFilter.from_options(options)
        if modules is None:
            modules = list(sys.modules.values())

        collected: list[type] = []
        for module in modules:
            module_name = getattr(module, "__name__", None)
            if not isinstance(module_name, str) or not module_filter.accepts(module_name):
                continue
            if options.collect_module_log_enabled:
                logger.info("Collecting concrete types from module %s", module_name)
            collected.extend(_concrete_types_in(module))

        return cls(collected)

    @classmethod
    def from_modules(cls, *modules: ModuleType) -> "TypeUniverse":
        """Build a universe from the given modules without any filtering."""
        return cls(
            concrete_type
            for module in modules
            for concrete_type in _concrete_types_in(module)
        )

    @property
    def concrete_type_count(self) -> int:
        return len(self._types)

    def get_concrete_type(self, index: int) -> type:
        return self._types[index]

    @overload
    def __getitem__(self, index: int) -> type: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[type, ...]: ...

    def __getitem__(self, index):
        return self._types[index]

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[type]:
        return iter(self._types)

    def __contains__(self, item) -> bool:
        return item in self._types

    def __repr__(self) -> str:
        return f"TypeUniverse({len(self._types)} types)"


def _concrete_types_in(module: ModuleType) -> list[type]:
    module_name = getattr(module, "__name__", None)
    try:
        return [
            member
            for member in list(vars(module).values())
            if isinstance(member, type)
            and member.__module__ == module_name
            and not inspect.isabstract(member)
        ]
    except Exception:
        logger.debug("Skipping unreadable module %s", module_name, exc_info=True)
        return []
