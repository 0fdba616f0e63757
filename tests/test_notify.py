import socket

import pytest

from sanesystem.notify import DEFAULT_HOST, DEFAULT_PORT, KernelNotifier


@pytest.fixture
def receiver():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


def test_defaults():
    with KernelNotifier() as notifier:
        assert notifier.address == (DEFAULT_HOST, DEFAULT_PORT)


def test_send_delivers_joined_message(receiver):
    port = receiver.getsockname()[1]
    with KernelNotifier("127.0.0.1", port) as notifier:
        message = notifier.send("error: line=", 7, ", cmd=", "ls")
    data, _ = receiver.recvfrom(4096)
    assert message == "error: line=7, cmd=ls"
    assert data == message.encode()


def test_send_echoes_to_stderr(receiver, capsys):
    port = receiver.getsockname()[1]
    with KernelNotifier("127.0.0.1", port) as notifier:
        notifier.send("time=", 12)
    assert capsys.readouterr().err == "time=12\n"


def test_invalid_address_raises():
    with pytest.raises(ValueError):
        KernelNotifier("not-an-ip", 1234)


def test_context_manager_closes():
    with KernelNotifier() as notifier:
        assert notifier.closed is False
    assert notifier.closed is True


def test_send_after_close_still_returns_message():
    notifier = KernelNotifier()
    notifier.close()
    assert notifier.send("a", "b") == "ab"