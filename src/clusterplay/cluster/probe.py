"""
Readiness checks run once every node has been started.

Neither check ever raises: an unreachable endpoint only changes what the
operator is told.
"""
import asyncio
from typing import Callable, Optional, Tuple

import aiohttp
import pymysql

from ..utils.logging import get_logger


def split_addr(addr: str) -> Tuple[str, int]:
    host, _, port = addr.rpartition(":")
    return host, int(port)


def try_connect(addr: str, timeout: float = 3.0):
    """
    Open and close one MySQL-protocol session as root.

    Raises:
        pymysql.MySQLError: If the handshake fails
        OSError: If the endpoint is not reachable
    """
    host, port = split_addr(addr)
    conn = pymysql.connect(
        host=host,
        port=port,
        user="root",
        password="",
        connect_timeout=timeout,
    )
    conn.close()


class ReadinessProbe:
    """Bounded-retry connectivity probe and console detection."""

    def __init__(
        self,
        attempts: int = 60,
        interval: float = 1.0,
        timeout: float = 3.0,
        connect: Optional[Callable[[str, float], None]] = None,
        sleep: Optional[Callable[[float], "asyncio.Future"]] = None
    ):
        self.attempts = attempts
        self.interval = interval
        self.timeout = timeout
        self._connect = connect or try_connect
        self._sleep = sleep or asyncio.sleep
        self.logger = get_logger(__name__)

    async def check_db(self, addr: str) -> bool:
        """
        Retry a handshake against addr until it succeeds or the budget runs out.

        Returns:
            True once connected, False if every attempt failed
        """
        for attempt in range(1, self.attempts + 1):
            try:
                await asyncio.to_thread(self._connect, addr, self.timeout)
            except (pymysql.MySQLError, OSError) as e:
                self.logger.debug(f"{addr} not ready (attempt {attempt}/{self.attempts}): {e}")
                await self._sleep(self.interval)
                continue

            host, port = split_addr(addr)
            print(f"To connect TiDB: mysql --host {host} --port {port} -u root")
            return True

        self.logger.warning(f"{addr} still unreachable after {self.attempts} attempts")
        return False

    async def has_dashboard(self, pd_addr: str) -> bool:
        """True if the pd at pd_addr serves the dashboard."""
        url = f"http://{pd_addr}/dashboard"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url, timeout=aiohttp.ClientTimeout(total=self.timeout)) as response:
                    return response.status == 200
        except Exception:
            return False
