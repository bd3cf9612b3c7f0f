# settings.py
import logging
import os

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 12345
BACKLOG = 10

BUFFER_SIZE = 4096
NAME_LEN = 32          # names keep at most NAME_LEN - 1 characters

LOG_FILE = "chat.log"
DEFAULT_TAIL = 20
PORT_FILE = "myport.info"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

log = logging.getLogger(__name__)


def resolve_port(cli_port: int | None = None, port_file: str = PORT_FILE) -> int:
    """Pick the listening port: command line, then port file, then default."""
    if cli_port is not None:
        return cli_port
    if not os.path.exists(port_file):
        return DEFAULT_PORT
    try:
        with open(port_file, "r", encoding="utf-8") as f:
            return int(f.read().strip())
    except (OSError, ValueError):
        log.warning(f"Invalid port in {port_file}, using default {DEFAULT_PORT}")
        return DEFAULT_PORT


def configure_logging(level="INFO"):
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")
