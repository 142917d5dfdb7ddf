"""Format adapter registry: input signature -> reader.

Each :class:`FormatAdapter` pairs a cheap *matcher* (file extension, or the
presence of structural markers on an in-memory object) with a reader and the
names of the external dependencies the reader needs. Matchers never parse the
input. Adapters are tried in registration order; the first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, List, Mapping, Optional, Tuple

from mvpa_dataset.errors import UnknownFormatError
from mvpa_dataset.ingest.fieldtrip import UNKNOWN, BuiltinFieldTrip
from mvpa_dataset.ingest.readers_eeglab import EeglabReaderConfig, EeglabTxtReader
from mvpa_dataset.ingest.readers_fieldtrip import FieldTripReader, FieldTripReaderConfig
from mvpa_dataset.models.dataset import Dataset


Matcher = Callable[[Any], bool]
ReaderFn = Callable[[Any], Dataset]


@dataclass(frozen=True)
class FormatAdapter:
    name: str
    matcher: Matcher
    reader: ReaderFn
    externals: Tuple[str, ...] = ()


def endswith(ext: str) -> Matcher:
    """Matcher for paths (str or Path) with the given extension, case-insensitive."""
    ext = ext.lower()

    def matcher(source: Any) -> bool:
        if isinstance(source, Path):
            source = str(source)
        return isinstance(source, str) and source.lower().endswith(ext)

    return matcher


def is_ft_struct(fieldtrip: Any = None) -> Matcher:
    """Matcher for in-memory FieldTrip-like mappings (a 'dimord' and a known data type)."""
    ft_cap = fieldtrip if fieldtrip is not None else BuiltinFieldTrip()

    def matcher(source: Any) -> bool:
        return (
            isinstance(source, Mapping)
            and "dimord" in source
            and ft_cap.datatype(source) != UNKNOWN
        )

    return matcher


class FormatRegistry:
    """Ordered collection of format adapters."""

    def __init__(self, adapters: Optional[List[FormatAdapter]] = None):
        self._adapters: List[FormatAdapter] = []
        for adapter in adapters or ():
            self.register(adapter)

    def register(self, adapter: FormatAdapter) -> None:
        if adapter.name in self.names():
            raise KeyError(f"Format '{adapter.name}' is already registered")
        self._adapters.append(adapter)

    def names(self) -> List[str]:
        return [a.name for a in self._adapters]

    def __iter__(self) -> Iterator[FormatAdapter]:
        return iter(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)

    def get(self, name: str) -> FormatAdapter:
        for adapter in self._adapters:
            if adapter.name == name:
                return adapter
        raise KeyError(name)

    def match(self, source: Any) -> FormatAdapter:
        for adapter in self._adapters:
            if adapter.matcher(source):
                return adapter
        if isinstance(source, (str, Path)):
            what = f"'{source}'"
        else:
            what = f"object of type {type(source).__name__}"
        raise UnknownFormatError(
            f"Unknown format for {what}; supported formats are: {', '.join(self.names())}"
        )


def default_registry(
    *,
    fieldtrip: Any = None,
    fieldtrip_config: Optional[FieldTripReaderConfig] = None,
    eeglab_config: Optional[EeglabReaderConfig] = None,
) -> FormatRegistry:
    """Registry with the EEGLAB text, FieldTrip .mat and FieldTrip in-memory formats."""
    ft_reader = FieldTripReader(fieldtrip_config, fieldtrip=fieldtrip)
    eeglab_reader = EeglabTxtReader(eeglab_config)

    return FormatRegistry([
        FormatAdapter("eeglab_txt", endswith(".txt"), eeglab_reader.read),
        # any .mat file is assumed to hold a FieldTrip structure
        FormatAdapter("ft", endswith(".mat"), ft_reader.read, ("scipy",)),
        FormatAdapter("ft_struct", is_ft_struct(fieldtrip), ft_reader.convert, ()),
    ])
