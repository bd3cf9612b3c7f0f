# activity_log.py
import logging
import itertools
import os
from collections import deque

log = logging.getLogger(__name__)

_ids = itertools.count()


class ActivityLog:
    """Append-only record of chat events, one ``TAG detail`` line each."""

    def __init__(self, path):
        self.path = os.fspath(path)
        self._logger = logging.getLogger(f"chat.activity.{next(_ids)}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        self._logger.addHandler(self._handler)

    def record(self, tag: str, detail: str):
        self._logger.info(f"{tag} {detail}")

    def connect(self, name, addr):
        self.record("CONNECT", f"{name} ({addr[0]}:{addr[1]})")

    def disconnect(self, name):
        self.record("DISCONNECT", name)

    def nick(self, old, new):
        self.record("NICK", f"{old} -> {new}")

    def message(self, name, text):
        self.record("MSG", f"{name}: {text}")

    def private(self, sender, target, text):
        self.record("PM", f"{sender} -> {target}: {text}")

    def quit(self, name):
        self.record("QUIT", name)

    def tail(self, n: int) -> list[str]:
        if n <= 0 or not os.path.exists(self.path):
            return []
        self._handler.flush()
        with open(self.path, "r", encoding="utf-8", errors="replace") as f:
            return [line.rstrip("\n") for line in deque(f, maxlen=n)]

    def close(self):
        self._logger.removeHandler(self._handler)
        self._handler.close()


def open_activity_log(path):
    """Open the activity log, or return None if the file can't be opened."""
    try:
        return ActivityLog(path)
    except OSError as e:
        log.error(f"cannot open activity log {path}: {e}")
        return None
