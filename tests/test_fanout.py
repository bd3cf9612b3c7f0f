import threading

from fanout import broadcast, send_to
from registry import ConnectionRegistry


def test_send_to_writes_everything(socket_pair):
    a, b = socket_pair()
    text = "y" * 100000 + "\n"
    got = []

    def reader():
        with b.makefile("r") as f:
            got.append(f.readline())

    t = threading.Thread(target=reader)
    t.start()
    assert send_to(a, text) == len(text)
    t.join(timeout=5)
    assert got == [text]


def test_send_to_closed_peer_returns_none(socket_pair):
    a, b = socket_pair()
    b.close()
    assert send_to(a, "hello\n") is None


def test_broadcast_excludes_one_and_reaches_each_once(socket_pair, read_pending):
    reg = ConnectionRegistry()
    far_ends = []
    for i in range(4):
        near, far = socket_pair()
        reg.add(near, f"u{i}")
        far_ends.append(far)

    broadcast(reg, "hi\n", exclude=reg[2].handle)

    assert [read_pending(f) for f in far_ends] == [b"hi\n", b"hi\n", b"", b"hi\n"]


def test_broadcast_survives_dead_recipient(socket_pair, read_pending):
    reg = ConnectionRegistry()
    dead_near, dead_far = socket_pair()
    live_near, live_far = socket_pair()
    reg.add(dead_near, "dead")
    reg.add(live_near, "live")
    dead_far.close()

    broadcast(reg, "still here\n")

    assert read_pending(live_far) == b"still here\n"
    assert reg.count() == 2
