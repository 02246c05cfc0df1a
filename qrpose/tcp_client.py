"""Minimal blocking TCP client used to query QR readers."""

from __future__ import annotations

import socket
from types import TracebackType

_RECEIVE_LIMIT = 1023


class TcpClient:
    """A single IPv4 TCP connection to a reader that answers text commands."""

    def __init__(self, ip: str, port: int) -> None:
        self.ip = ip
        self.port = port
        self._sock: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self) -> None:
        """Open the connection; raise ConnectionError if it cannot be made."""
        self.close()
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        try:
            sock.connect((self.ip, self.port))
        except OSError as exc:
            sock.close()
            raise ConnectionError(
                f"failed to connect to server {self.ip}:{self.port}"
            ) from exc
        self._sock = sock

    def send_command(self, command: str) -> None:
        """Send a command string; raise ConnectionError on failure."""
        if self._sock is None:
            raise ConnectionError("failed to send command: not connected")
        try:
            self._sock.sendall(command.encode("utf-8"))
        except OSError as exc:
            raise ConnectionError("failed to send command") from exc

    def receive_response(self) -> str:
        """Read one reply of at most 1023 bytes; empty string if nothing came."""
        if self._sock is None:
            return ""
        try:
            data = self._sock.recv(_RECEIVE_LIMIT)
        except OSError:
            return ""
        # The reply is treated as a NUL-terminated string.
        data = data.split(b"\0", 1)[0]
        return data.decode("utf-8", errors="replace")

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> "TcpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()