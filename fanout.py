# fanout.py
import logging

log = logging.getLogger(__name__)


def send_to(sock, text: str) -> int | None:
    """Write all of ``text`` to ``sock``.

    Returns the number of bytes sent, or None if the peer is gone. A failed
    send is not fatal; the next read on that connection reports the close.
    """
    data = text.encode("utf-8", errors="replace")
    total = 0
    try:
        while total < len(data):
            n = sock.send(data[total:])
            if n <= 0:
                return None
            total += n
    except OSError as e:
        log.debug(f"send to fd={sock.fileno()} failed: {e}")
        return None
    return total


def broadcast(registry, text: str, exclude=None):
    # fire and forget, per-recipient failures are left to the read path
    for conn in registry:
        if conn.handle is exclude:
            continue
        send_to(conn.handle, text)
