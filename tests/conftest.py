import select
import socket

import pytest

from activity_log import ActivityLog
from server import ChatServer


def pending(sock) -> bytes:
    """Everything already buffered on ``sock``, without blocking."""
    chunks = []
    sock.setblocking(False)
    try:
        while True:
            try:
                data = sock.recv(65536)
            except BlockingIOError:
                break
            if not data:
                break
            chunks.append(data)
    finally:
        sock.setblocking(True)
    return b"".join(chunks)


class Peer:
    """Test-side end of a client connection to a running ChatServer."""

    def __init__(self, sock, name):
        self.sock = sock
        self.name = name
        self.file = sock.makefile("r", encoding="utf-8", newline="\n")

    def send(self, line):
        self.sock.sendall((line + "\n").encode("utf-8"))

    def readline(self):
        return self.file.readline()

    def silent(self, wait=0.1):
        readable, _, _ = select.select([self.sock], [], [], wait)
        return not readable

    def close(self):
        self.file.close()
        self.sock.close()


@pytest.fixture
def read_pending():
    return pending


@pytest.fixture
def socket_pair():
    made = []

    def _make():
        a, b = socket.socketpair()
        made.extend((a, b))
        return a, b

    yield _make
    for s in made:
        s.close()


@pytest.fixture
def activity(tmp_path):
    log = ActivityLog(tmp_path / "chat.log")
    yield log
    log.close()


@pytest.fixture
def server(activity):
    srv = ChatServer("127.0.0.1", 0, activity=activity)
    yield srv
    srv.close()


@pytest.fixture
def join(server):
    peers = []

    def _join():
        sock = socket.create_connection(server.address, timeout=2)
        server.run_once(timeout=2)
        name = server.registry[server.registry.count() - 1].name
        peer = Peer(sock, name)
        assert peer.readline() == "Welcome! Use /nick to set name.\n"
        for other in peers:
            assert other.readline() == f"{name} has joined the chat.\n"
        peers.append(peer)
        return peer

    yield _join
    for p in peers:
        p.close()
