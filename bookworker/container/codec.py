"""In-memory EPUB (zip) container.

The container keeps every entry's payload in memory together with the
per-entry zip attributes observed at open time, so serializing an untouched
container reproduces the same entries in the same order with the same
content. Only entries passed to ``write_entry`` are re-encoded.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from dataclasses import dataclass

from bookworker.container.exceptions import (
    CorruptArchiveError,
    EntryMissingError,
    EntryReadError,
)

MIMETYPE_ENTRY = "mimetype"
_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_UNIX_FILE_ATTR = 0o100644 << 16


@dataclass
class _Entry:
    content: bytes | None
    date_time: tuple[int, int, int, int, int, int] = _FIXED_DATE_TIME
    compress_type: int = zipfile.ZIP_DEFLATED
    external_attr: int = _UNIX_FILE_ATTR
    create_system: int = 3
    read_error: str | None = None


class EpubContainer:
    """Addressable set of named entries opened from an archive byte stream."""

    def __init__(self) -> None:
        self._order: list[str] = []
        self._entries: dict[str, _Entry] = {}
        self._dirty: set[str] = set()

    @classmethod
    def open(cls, data: bytes) -> EpubContainer:
        """Open archive bytes.

        Raises:
            CorruptArchiveError: if the bytes are not a readable zip archive.
        """
        container = cls()
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                for info in archive.infolist():
                    container._load(archive, info)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError) as exc:
            raise CorruptArchiveError(f"Cannot open archive: {exc}") from exc
        return container

    def _load(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> None:
        content: bytes | None
        read_error: str | None = None
        try:
            content = archive.read(info)
        except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as exc:
            content = None
            read_error = str(exc)
        if info.filename not in self._entries:
            self._order.append(info.filename)
        self._entries[info.filename] = _Entry(
            content=content,
            date_time=info.date_time,
            compress_type=info.compress_type,
            external_attr=info.external_attr,
            create_system=info.create_system,
            read_error=read_error,
        )

    def entry_names(self) -> list[str]:
        return list(self._order)

    def has_entry(self, name: str) -> bool:
        return name in self._entries

    @property
    def unreadable_entries(self) -> dict[str, str]:
        """Entries whose payload failed to decompress, mapped to the reason."""
        return {
            name: entry.read_error
            for name, entry in self._entries.items()
            if entry.read_error is not None
        }

    @property
    def dirty_entries(self) -> set[str]:
        return set(self._dirty)

    def read_binary(self, name: str) -> bytes:
        """Return an entry's raw payload.

        Raises:
            EntryMissingError: if no entry has this name.
            EntryReadError: if the entry could not be decompressed at open time.
        """
        entry = self._entries.get(name)
        if entry is None:
            raise EntryMissingError(f"Entry not found: {name}")
        if entry.content is None:
            raise EntryReadError(f"Entry {name} is unreadable: {entry.read_error}")
        return entry.content

    def read_text(self, name: str) -> str:
        """Return an entry's payload decoded as UTF-8."""
        content = self.read_binary(name)
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EntryReadError(f"Entry {name} is not valid UTF-8: {exc}") from exc

    def write_entry(self, name: str, content: str | bytes) -> None:
        """Replace (or add) an entry's payload and mark it dirty."""
        payload = content.encode("utf-8") if isinstance(content, str) else content
        entry = self._entries.get(name)
        if entry is None:
            self._order.append(name)
            self._entries[name] = _Entry(content=payload)
        else:
            entry.content = payload
            entry.read_error = None
        self._dirty.add(name)

    def remove_entry(self, name: str) -> None:
        if name not in self._entries:
            raise EntryMissingError(f"Entry not found: {name}")
        del self._entries[name]
        self._order.remove(name)
        self._dirty.discard(name)

    def serialize(self) -> bytes:
        """Write all readable entries, in open-time order, to archive bytes."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            for name in self._order:
                entry = self._entries[name]
                if entry.content is None:
                    continue
                archive.writestr(self._zip_info(name, entry), entry.content)
        return buffer.getvalue()

    @staticmethod
    def _zip_info(name: str, entry: _Entry) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(filename=name, date_time=entry.date_time)
        info.compress_type = (
            zipfile.ZIP_STORED if name == MIMETYPE_ENTRY else entry.compress_type
        )
        info.external_attr = entry.external_attr
        info.create_system = entry.create_system
        return info
