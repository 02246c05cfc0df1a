"""Parsing and retrieval of QR corner reports from readers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from qrpose.tcp_client import TcpClient

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class QRCorners:
    """Pixel coordinates of the four corners of one QR code."""

    id: int
    x: tuple[int, int, int, int]
    y: tuple[int, int, int, int]


def _tokens(text: str, delimiter: str) -> list[str]:
    """Split like repeated line reads: a trailing empty field is not a token."""
    parts = text.split(delimiter)
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"invalid integer: {text!r}")
    return int(match.group(1))


def parse_qr_data(text: str, target_id: str) -> QRCorners:
    """Find the entry for target_id in 'ID:x/y:x/y:x/y:x/y,...' text."""
    for entry in _tokens(text, ","):
        qr_id, _, rest = entry.partition(":")
        if qr_id != target_id:
            continue
        identifier = _leading_int(qr_id)
        if identifier < 0:
            identifier &= 0xFFFFFFFF
        pairs = _tokens(rest, ":")
        if len(pairs) < 4:
            raise ValueError(f"coordinate parse error: ID={qr_id}")
        xs: list[int] = []
        ys: list[int] = []
        for pair in pairs[:4]:
            x_text, sep, y_text = pair.partition("/")
            if not sep:
                raise ValueError(f"coordinate format error: {pair}")
            xs.append(_leading_int(x_text))
            ys.append(_leading_int(y_text))
        return QRCorners(identifier, tuple(xs), tuple(ys))  # type: ignore[arg-type]
    raise LookupError(f"QR ID '{target_id}' is not present in the data")


def read_qr_data_file(path: str | Path) -> str:
    """Return the whole content of a QR data text file."""
    return Path(path).read_text(encoding="utf-8")


def fetch_qr_data(ip: str, port: int, command: str = "LON\r\n") -> str:
    """Send a command to a reader and return its reply."""
    with TcpClient(ip, port) as client:
        client.connect()
        client.send_command(command)
        response = client.receive_response()
    if not response:
        raise ConnectionError("no response from server")
    return response