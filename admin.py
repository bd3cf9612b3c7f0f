# admin.py
import sys

from settings import DEFAULT_TAIL

HELP = "Unknown admin command. Available: clients, logs [N], shutdown"


class AdminConsole:
    """Operator commands read from the server's own stdin."""

    def __init__(self, registry, activity=None, out=None):
        self.registry = registry
        self.activity = activity
        self.out = out or sys.stdout

    def _print(self, text):
        print(text, file=self.out)

    def handle(self, line: str):
        cmd = line.strip()
        if not cmd:
            return
        if cmd == "clients":
            self.list_clients()
        elif cmd == "logs" or cmd.startswith("logs "):
            self.show_logs(cmd[4:].strip())
        elif cmd == "shutdown":
            self._print("Shutting down server...")
            raise SystemExit(0)
        else:
            self._print(HELP)

    def list_clients(self):
        self._print(f"Connected clients ({self.registry.count()}):")
        for conn in self.registry:
            self._print(f" - {conn.name} (fd={conn.handle.fileno()})")

    def show_logs(self, arg=""):
        try:
            n = int(arg) if arg else DEFAULT_TAIL
        except ValueError:
            n = DEFAULT_TAIL
        if self.activity is None:
            self._print("no log file open")
            return
        for line in self.activity.tail(n):
            self._print(line)
