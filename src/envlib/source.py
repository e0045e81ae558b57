from __future__ import annotations

import io
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from .errors import SourceReadError

log = logging.getLogger(__name__)


def _parse_lines(lines: Iterable[str]) -> Dict[str, str]:
    entries: Dict[str, str] = {}
    for line in lines:
        line = line.rstrip("\r\n")
        if "=" not in line or line.startswith("#"):
            continue
        parts = line.split("=", 1)
        key = parts[0].lower()
        entries[key] = parts[1] if len(parts) > 1 else ""
    return entries


class ConfigSource:
    """Case-insensitive key/value view of a ``KEY=VALUE`` env file.

    The mapping is frozen after construction, so ``get`` may be called from
    several threads without locking.
    """

    def __init__(self, entries: Optional[Mapping[str, str]] = None, path: Optional[Path] = None) -> None:
        normalized = {k.lower(): v for k, v in (entries or {}).items()}
        self._entries: Mapping[str, str] = MappingProxyType(normalized)
        self.path = path

    @classmethod
    def parse(cls, text: str, path: Optional[Path] = None) -> "ConfigSource":
        # universal newlines, the same line boundaries load() sees
        return cls(_parse_lines(io.StringIO(text, newline=None)), path=path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ConfigSource":
        """Load entries from ``path``.

        A missing file yields an empty source. A file that exists but cannot
        be read raises :class:`SourceReadError`.
        """
        p = Path(path)
        if not p.exists():
            log.debug("Config file %s not found, starting with no entries", p)
            return cls(path=p)

        try:
            with p.open("r", encoding="utf-8") as fh:
                entries = _parse_lines(fh)
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(p, e) from e

        log.info("Loaded %d entries from %s", len(entries), p)
        return cls(entries, path=p)

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key.lower())

    def keys(self) -> Iterator[str]:
        return iter(self._entries)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ConfigSource(path={self.path!r}, entries={len(self)})"
