"""
Free TCP port allocation for instances sharing one host.

Ports are handed out before any node binds them, so the allocator keeps its
own record of what it already returned in this run and never returns a
(host, port) pair twice.
"""
import errno
import socket
from typing import Set, Tuple

from .logging import get_logger

MAX_PORT = 65535


class PortAllocator:
    """Returns unused ports at or above a preferred value."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self._reserved: Set[Tuple[str, int]] = set()

    def get_free_port(self, host: str, preferred: int) -> int:
        """
        Reserve the first free port >= preferred on host.

        Raises:
            OSError: If host is not a local address, or no port is left in range
        """
        for port in range(preferred, MAX_PORT + 1):
            if (host, port) in self._reserved:
                continue
            if self._port_available(host, port):
                self._reserved.add((host, port))
                if port != preferred:
                    self.logger.debug(f"Port {preferred} busy on {host}, using {port}")
                return port
        raise OSError(f"No free port on {host} at or above {preferred}")

    @property
    def reserved(self) -> Set[Tuple[str, int]]:
        return set(self._reserved)

    @staticmethod
    def _port_available(host: str, port: int) -> bool:
        """
        Raises:
            OSError: If host cannot be bound at all, whatever the port
        """
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError as e:
                if e.errno == errno.EADDRNOTAVAIL:
                    raise
                return False
            return True
