# server.py
import argparse
import logging
import os
import select
import socket
import sys

import settings
from activity_log import open_activity_log
from admin import AdminConsole
from commands import handle_line
from fanout import broadcast, send_to
from registry import ConnectionRegistry, RegistryError

log = logging.getLogger(__name__)

WELCOME = "Welcome! Use /nick to set name.\n"


class ChatServer:
    """Single-threaded chat server multiplexing every socket with select().

    The registry, fanout and sockets are only touched from the loop, so no
    locking is needed. Writes are blocking: a stalled peer stalls the loop.
    """

    def __init__(self, host=settings.DEFAULT_HOST, port=settings.DEFAULT_PORT,
                 activity=None, admin_stream=None, admin_out=None):
        self.registry = ConnectionRegistry()
        self.activity = activity
        self.admin = AdminConsole(self.registry, activity, out=admin_out)
        self.admin_stream = admin_stream
        self._admin_pending = b""
        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self.listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.listener.bind((host, port))
            self.listener.listen(settings.BACKLOG)
        except OSError:
            self.listener.close()
            raise

    @property
    def address(self):
        return self.listener.getsockname()

    def _sources(self):
        sources = [self.listener]
        if self.admin_stream is not None:
            sources.append(self.admin_stream)
        return sources + self.registry.handles()

    def run_once(self, timeout=None):
        readable, _, _ = select.select(self._sources(), [], [], timeout)
        ready = set(readable)

        if self.admin_stream is not None and self.admin_stream in ready:
            self._read_admin()

        if self.listener in ready:
            self._accept()

        # back to front: removal swaps the last entry into the freed slot
        for i in range(self.registry.count() - 1, -1, -1):
            if i >= self.registry.count():
                continue
            conn = self.registry[i]
            if conn.handle in ready:
                self._read_client(i)

    def serve_forever(self):
        log.info(f"Server listening on port {self.address[1]}")
        try:
            while True:
                try:
                    self.run_once()
                except (OSError, ValueError) as e:
                    log.error(f"select: {e}")
                    break
        finally:
            self.close()

    def _read_admin(self):
        # raw reads: a text-buffered readline would hide pasted lines from select
        data = os.read(self.admin_stream.fileno(), 512)
        if not data:
            log.info("admin input closed")
            self.admin_stream = None
            return
        *lines, self._admin_pending = (self._admin_pending + data).split(b"\n")
        for line in lines:
            self.admin.handle(line.decode("utf-8", errors="replace"))

    def _accept(self):
        try:
            sock, addr = self.listener.accept()
        except OSError as e:
            log.error(f"accept: {e}")
            return
        name = f"User{sock.fileno()}"
        try:
            self.registry.add(sock, name)
        except RegistryError as e:
            log.error(f"accept: {e}")
            sock.close()
            return
        broadcast(self.registry, f"{name} has joined the chat.\n", exclude=sock)
        send_to(sock, WELCOME)
        if self.activity:
            self.activity.connect(name, addr)
        log.info(f"{name} connected from {addr[0]}:{addr[1]}")

    def _read_client(self, idx):
        conn = self.registry[idx]
        sock = conn.handle
        try:
            data = sock.recv(settings.BUFFER_SIZE - 1)
        except OSError as e:
            log.error(f"recv from {conn.name}: {e}")
            self.registry.remove_by_index(idx)
            return

        if not data:
            broadcast(self.registry, f"{conn.name} has disconnected.\n", exclude=sock)
            if self.activity:
                self.activity.disconnect(conn.name)
            log.info(f"{conn.name} disconnected")
            self.registry.remove_by_index(idx)
            return

        # a line cut by the end of this buffer is dispatched as it stands
        for line in data.decode("utf-8", errors="replace").split("\n"):
            if not line:
                continue
            # a /quit earlier in this buffer already closed the socket
            if self.registry.find_by_handle(sock) is None:
                break
            handle_line(line, sock, self.registry, self.activity)

    def close(self):
        for conn in self.registry:
            try:
                conn.handle.close()
            except OSError:
                pass
        self.listener.close()
        if self.activity:
            self.activity.close()


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Multi-client text chat server")
    p.add_argument("port", nargs="?", type=int, default=None)
    p.add_argument("--host", default=settings.DEFAULT_HOST)
    p.add_argument("--log-file", default=settings.LOG_FILE)
    p.add_argument("--port-file", default=settings.PORT_FILE)
    p.add_argument("--log-level", default="INFO")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings.configure_logging(args.log_level)
    port = settings.resolve_port(args.port, args.port_file)
    activity = open_activity_log(args.log_file)
    try:
        server = ChatServer(args.host, port, activity=activity, admin_stream=sys.stdin)
    except OSError as e:
        log.error(f"cannot listen on {args.host}:{port}: {e}")
        if activity:
            activity.close()
        return 1
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        log.info("Shutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
