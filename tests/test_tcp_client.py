import socket
import threading

import pytest

from qrpose.tcp_client import TcpClient


@pytest.fixture
def server():
    listeners = []
    threads = []

    def start(reply):
        listener = socket.create_server(("127.0.0.1", 0))
        listener.settimeout(5)
        received = []

        def serve():
            conn, _ = listener.accept()
            with conn:
                conn.settimeout(5)
                received.append(conn.recv(1024))
                if reply:
                    conn.sendall(reply)

        thread = threading.Thread(target=serve, daemon=True)
        thread.start()
        listeners.append(listener)
        threads.append(thread)
        return listener.getsockname()[1], received

    yield start
    for thread in threads:
        thread.join(timeout=5)
    for listener in listeners:
        listener.close()


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_round_trip(server):
    port, received = server(b"001:1/2:3/4:5/6:7/8")
    with TcpClient("127.0.0.1", port) as client:
        client.connect()
        client.send_command("LON\r\n")
        response = client.receive_response()
    assert response == "001:1/2:3/4:5/6:7/8"
    assert received == [b"LON\r\n"]


def test_empty_when_server_closes(server):
    port, _ = server(b"")
    with TcpClient("127.0.0.1", port) as client:
        client.connect()
        client.send_command("LON\r\n")
        assert client.receive_response() == ""


def test_response_limited_to_1023_bytes(server):
    port, _ = server(b"a" * 2000)
    with TcpClient("127.0.0.1", port) as client:
        client.connect()
        client.send_command("LON\r\n")
        response = client.receive_response()
    assert 0 < len(response) <= 1023
    assert response == "a" * len(response)


def test_response_stops_at_nul(server):
    port, _ = server(b"abc\x00def")
    with TcpClient("127.0.0.1", port) as client:
        client.connect()
        client.send_command("LON\r\n")
        assert client.receive_response() == "abc"


def test_connect_refused_raises():
    client = TcpClient("127.0.0.1", _free_port())
    with pytest.raises(ConnectionError):
        client.connect()
    assert client.connected is False


def test_send_without_connect_raises():
    client = TcpClient("127.0.0.1", 9004)
    with pytest.raises(ConnectionError):
        client.send_command("LON\r\n")


def test_receive_without_connect_is_empty():
    assert TcpClient("127.0.0.1", 9004).receive_response() == ""


def test_context_manager_closes(server):
    port, _ = server(b"ok")
    with TcpClient("127.0.0.1", port) as client:
        client.connect()
        assert client.connected is True
        client.send_command("LON\r\n")
        client.receive_response()
    assert client.connected is False
    with pytest.raises(ConnectionError):
        client.send_command("LON\r\n")