"""Port availability check used before starting the server."""

import socket


def is_port_available(host: str, port: int) -> bool:
    """Return True if nothing is listening on host:port.

    A second overlay started while one is already running sees False and
    exits instead of failing to bind.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(1.0)
        return sock.connect_ex((host, port)) != 0
