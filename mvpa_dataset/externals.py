"""Presence checks for optional external dependencies of the format adapters.

A dependency is known by a short name (e.g. 'scipy'). Its presence is an
import-spec lookup of the modules listed for it; nothing is imported here.
Unknown names are treated as module names.
"""

from __future__ import annotations

import importlib.util
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from mvpa_dataset.errors import MissingDependencyError


@dataclass(frozen=True)
class External:
    name: str
    modules: Tuple[str, ...]
    url: str = ""


EXTERNALS: Dict[str, External] = {
    "scipy": External("scipy", ("scipy", "scipy.io"), "https://scipy.org"),
    # MATLAB v7.3 files are HDF5 containers
    "h5py": External("h5py", ("h5py",), "https://www.h5py.org"),
}


def _module_present(module: str) -> bool:
    try:
        return importlib.util.find_spec(module) is not None
    except (ImportError, ValueError):
        # find_spec imports parent packages and raises if one of them is missing
        return False


def has_external(name: str) -> bool:
    ext = EXTERNALS.get(name, External(name, (name,)))
    return all(_module_present(m) for m in ext.modules)


def missing_externals(names: Iterable[str]) -> List[str]:
    return [name for name in names if not has_external(name)]


def check_external(names: str | Iterable[str], raise_: bool = True) -> bool:
    """Check that all named dependencies are available.

    Returns True if all are present. Otherwise raises :class:`MissingDependencyError`
    for the first missing one, or returns False when ``raise_`` is False.
    """
    if isinstance(names, str):
        names = [names]
    missing = missing_externals(names)
    if not missing:
        return True
    if not raise_:
        return False
    name = missing[0]
    ext = EXTERNALS.get(name)
    hint = f" (see {ext.url})" if ext is not None and ext.url else ""
    raise MissingDependencyError(name, f"The external '{name}' is required but not available{hint}")
