import threading
from types import SimpleNamespace

import pytest

from deterrent import serial_link
from deterrent.serial_link import SerialLink
from utils.exceptions import DeviceConnectionError, SendError


def test_list_devices(monkeypatch):
    ports = [SimpleNamespace(device='/dev/ttyUSB0'), SimpleNamespace(device='/dev/ttyACM0')]
    monkeypatch.setattr(serial_link.list_ports, 'comports', lambda: ports)

    assert SerialLink.list_devices() == ['/dev/ttyUSB0', '/dev/ttyACM0']


def test_crlf_lines_are_delivered():
    received = []
    got_line = threading.Event()

    def on_line(line):
        received.append(line)
        got_line.set()

    link = SerialLink(line_ending='\r\n')
    link.open('loop://', on_line)
    try:
        assert link.is_open
        link.write_line('MOTION')
        assert got_line.wait(timeout=5)
    finally:
        link.close()

    assert received == ['MOTION']
    assert not link.is_open


def test_open_failure():
    link = SerialLink()

    with pytest.raises(DeviceConnectionError):
        link.open('/dev/does-not-exist-leopard-guard', lambda line: None)
    assert not link.is_open


def test_write_when_closed():
    with pytest.raises(SendError):
        SerialLink().write_line('ALARM_ON')


def test_write_after_close_raises_send_error():
    link = SerialLink()
    link.open('loop://', lambda line: None)
    link.close()

    with pytest.raises(SendError):
        link.write_line('ALARM_ON')
