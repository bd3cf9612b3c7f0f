# commands.py
"""Client command lines: parsing and their effect on the registry.

A line is parsed into one of the command values below and then executed
against a ``ConnectionRegistry``. Malformed commands are answered on the
sender's connection only and never raise.
"""
import logging
from dataclasses import dataclass

from fanout import broadcast, send_to
from registry import clip_name
from settings import BUFFER_SIZE

log = logging.getLogger(__name__)

USAGE_MSG = "Usage: /msg <user> <message>\n"
NOT_FOUND_MSG = "User not found.\n"
SENT_MSG = "(sent)\n"


@dataclass(frozen=True)
class Rename:
    name: str


@dataclass(frozen=True)
class PrivateMessage:
    target: str
    body: str


@dataclass(frozen=True)
class ListUsers:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Broadcast:
    body: str


@dataclass(frozen=True)
class Malformed:
    reply: str


def parse_command(line: str):
    if line.startswith("/nick "):
        return Rename(clip_name(line[6:]))

    if line.startswith("/msg "):
        target, _, body = line[5:].lstrip(" ").partition(" ")
        if not target or not body:
            return Malformed(USAGE_MSG)
        return PrivateMessage(target, body)

    if line == "/list":
        return ListUsers()

    if line == "/quit":
        return Quit()

    return Broadcast(line)


def render_user_list(names) -> str:
    """Roster block; stops adding names once BUFFER_SIZE would be exceeded."""
    out = f"Connected users ({len(names)}):\n"
    for name in names:
        entry = f"{name}\n"
        if len(out) + len(entry) > BUFFER_SIZE - 1:
            break
        out += entry
    return out


def execute(cmd, sock, registry, activity=None):
    if isinstance(cmd, Malformed):
        send_to(sock, cmd.reply)
        return

    if isinstance(cmd, ListUsers):
        send_to(sock, render_user_list(registry.names()))
        return

    idx = registry.find_by_handle(sock)

    if isinstance(cmd, Rename):
        if idx is None:
            return
        conn = registry[idx]
        old, conn.name = conn.name, cmd.name
        broadcast(registry, f"{old} is now known as {conn.name}\n")
        if activity:
            activity.nick(old, conn.name)

    elif isinstance(cmd, PrivateMessage):
        tidx = registry.find_by_name(cmd.target)
        if tidx is None or idx is None:
            send_to(sock, NOT_FOUND_MSG)
            return
        sender, target = registry[idx], registry[tidx]
        send_to(target.handle, f"(private) {sender.name}: {cmd.body}\n")
        send_to(sock, SENT_MSG)
        if activity:
            activity.private(sender.name, target.name, cmd.body)

    elif isinstance(cmd, Quit):
        if idx is None:
            return
        name = registry[idx].name
        broadcast(registry, f"{name} has left the chat.\n", exclude=sock)
        if activity:
            activity.quit(name)
        registry.remove_by_index(idx)

    elif isinstance(cmd, Broadcast):
        if idx is None:
            log.debug("dropping message from unregistered connection")
            return
        name = registry[idx].name
        broadcast(registry, f"{name}: {cmd.body}\n")
        if activity:
            activity.message(name, cmd.body)


def handle_line(line: str, sock, registry, activity=None):
    """Strip the line terminator and run the command it holds."""
    execute(parse_command(line.rstrip("\r\n")), sock, registry, activity)
