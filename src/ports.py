import asyncio
import logging
from typing import Optional

MAX_PORT = 65535

logger = logging.getLogger("ports")


class PortUnavailableError(RuntimeError):
    """No free port was found within the search window."""


async def is_port_available(port: int, host: str = "0.0.0.0") -> bool:
    """Try a throwaway bind-and-listen on ``host:port`` and release it."""
    loop = asyncio.get_running_loop()
    try:
        server = await loop.create_server(asyncio.Protocol, host, port)
    except OSError:
        return False

    server.close()
    await server.wait_closed()
    return True


async def find_available_port(
    start: int,
    max_attempts: int = 100,
    host: str = "0.0.0.0",
    log: Optional[logging.Logger] = None,
) -> int:
    """
    Return the first port at or above ``start`` that accepts a listener.

    Args:
        start: First port to probe
        max_attempts: How many consecutive ports to probe before giving up
        host: Interface to probe on; should match the one the server binds

    Returns:
        The first available port

    Raises:
        PortUnavailableError: if every probed port is taken
    """
    log = log or logger
    if not 0 < start <= MAX_PORT:
        raise ValueError(f"Invalid start port: {start}")
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    last = min(start + max_attempts - 1, MAX_PORT)
    for port in range(start, last + 1):
        if await is_port_available(port, host):
            return port
        log.debug(f"Port {port} is in use")

    raise PortUnavailableError(f"No available port between {start} and {last}")
