# client.py
import argparse
import logging
import queue
import socket
import sys
import threading

log = logging.getLogger(__name__)

DISCONNECTED = "Disconnected from server."


class ChatClient:
    """One connection to the chat server.

    Incoming lines are handed to ``on_line`` from a listener thread, or
    queued for ``drain()`` when no callback is given.
    """

    def __init__(self, on_line=None):
        self.on_line = on_line
        self.sock = None
        self.file = None
        self.q = queue.Queue()
        self.running = False
        self.closed = threading.Event()
        self.listen_thread = None

    def connect(self, host, port, timeout=5):
        if self.sock:
            return "Already connected"
        try:
            self.sock = socket.create_connection((host, int(port)), timeout=timeout)
            self.sock.settimeout(None)
            self.file = self.sock.makefile("r", encoding="utf-8", errors="replace", newline="\n")
            self.running = True
            self.closed.clear()
            self.listen_thread = threading.Thread(target=self._loop, daemon=True)
            self.listen_thread.start()
            return f"Connected to {host}:{port}"
        except (OSError, ValueError) as e:
            if self.sock:
                self.sock.close()
            self.sock = None
            self.file = None
            return f"Connect failed: {e}"

    def send_line(self, text):
        sock = self.sock
        if not sock:
            return
        try:
            sock.sendall((text.rstrip("\r\n") + "\n").encode("utf-8"))
        except OSError as e:
            log.debug(f"send failed: {e}")
            self.running = False

    def _emit(self, line):
        if self.on_line:
            self.on_line(line)
        else:
            self.q.put(line)

    def _loop(self):
        try:
            for line in self.file:
                self._emit(line.rstrip("\r\n"))
        except (OSError, ValueError) as e:
            log.debug(f"receive loop ended: {e}")
        finally:
            self.running = False
            self._emit(DISCONNECTED)
            self.closed.set()

    def drain(self, n=100):
        out = []
        for _ in range(n):
            try:
                out.append(self.q.get_nowait())
            except queue.Empty:
                break
        return out

    def disconnect(self):
        self.running = False
        sock, self.sock = self.sock, None
        if sock:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()


def _pump_input(client, stream):
    # stdin -> server; stops after /quit or end of input
    for line in stream:
        client.send_line(line)
        if line.startswith("/quit") or not client.running:
            break
    client.disconnect()


def run_terminal(host, port, stdin=None, stdout=None):
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    def show(line):
        print(line, file=stdout, flush=True)

    client = ChatClient(on_line=show)
    status = client.connect(host, port)
    if not client.sock:
        print(status, file=sys.stderr)
        return 1
    threading.Thread(target=_pump_input, args=(client, stdin), daemon=True).start()
    client.closed.wait()
    client.disconnect()
    return 0


def main(argv=None):
    p = argparse.ArgumentParser(description="Terminal chat client")
    p.add_argument("host", nargs="?")
    p.add_argument("port", nargs="?", type=int)
    args = p.parse_args(argv)
    if args.host is None or args.port is None:
        print(f"Usage: {p.prog} <server-ip> <port>")
        return 1
    return run_terminal(args.host, args.port)


if __name__ == "__main__":
    sys.exit(main())
