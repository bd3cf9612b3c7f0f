# registry.py
import logging
import socket
from dataclasses import dataclass

from settings import NAME_LEN

log = logging.getLogger(__name__)


class RegistryError(Exception):
    pass


def clip_name(name: str) -> str:
    return name[:NAME_LEN - 1]


@dataclass
class Connection:
    handle: socket.socket
    name: str


class ConnectionRegistry:
    """Live connections in insertion order.

    Removal moves the last entry into the freed slot, so positions are not
    stable across removals. Only the event loop touches the registry.
    """

    def __init__(self):
        self._entries: list[Connection] = []

    def add(self, handle, name: str) -> Connection:
        if self.find_by_handle(handle) is not None:
            raise RegistryError(f"handle {handle.fileno()} already registered")
        conn = Connection(handle, clip_name(name))
        self._entries.append(conn)
        log.debug(f"added {conn.name} (fd={handle.fileno()})")
        return conn

    def remove_by_index(self, idx: int):
        """Close the transport of entry ``idx`` and drop it; no-op if out of range."""
        if idx < 0 or idx >= len(self._entries):
            return
        conn = self._entries[idx]
        try:
            conn.handle.close()
        except OSError:
            pass
        last = self._entries.pop()
        if idx < len(self._entries):
            self._entries[idx] = last
        log.debug(f"removed {conn.name}")

    def find_by_name(self, name: str) -> int | None:
        for i, conn in enumerate(self._entries):
            if conn.name == name:
                return i
        return None

    def find_by_handle(self, handle) -> int | None:
        for i, conn in enumerate(self._entries):
            if conn.handle is handle:
                return i
        return None

    def count(self) -> int:
        return len(self._entries)

    def handles(self):
        return [conn.handle for conn in self._entries]

    def names(self):
        return [conn.name for conn in self._entries]

    def __len__(self):
        return len(self._entries)

    def __getitem__(self, idx) -> Connection:
        return self._entries[idx]

    def __iter__(self):
        return iter(list(self._entries))
