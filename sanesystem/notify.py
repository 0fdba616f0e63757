"""Fire-and-forget UDP notifications to the local kernel listener."""

from __future__ import annotations

import socket
import sys

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 15390


class KernelNotifier:
    """Sends text messages as UDP datagrams and echoes them to stderr."""

    def __init__(self, host=DEFAULT_HOST, port=DEFAULT_PORT):
        try:
            socket.inet_pton(socket.AF_INET, host)
        except OSError as exc:
            raise ValueError(f"invalid address/address not supported: {host}") from exc
        self._address = (host, port)
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    @property
    def address(self):
        return self._address

    @property
    def closed(self):
        return self._sock.fileno() == -1

    def send(self, *args):
        """Join the arguments into one message, log it and send it; return the message."""
        message = "".join(str(arg) for arg in args)
        print(message, file=sys.stderr)
        try:
            self._sock.sendto(message.encode(), self._address)
        except OSError:
            pass
        return message

    def close(self):
        self._sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
        return False