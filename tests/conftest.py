import pytest

import peers
import relay

A = "30:00:00:00:00:01"
B = "30:00:00:00:00:02"
C = "30:00:00:00:00:03"
D = "30:00:00:00:00:04"
BROADCAST = "ff:ff:ff:ff:ff:ff"

def mk_frame(dst, src, payload = b"\x08\x00payload"):
    return (bytes.fromhex(dst.replace(":", "")) +
            bytes.fromhex(src.replace(":", "")) + payload)

class RecordingTransport(object):
    """ Stands in for the UDP socket, remembering every send """
    def __init__(self):
        self.sent = []

    def send(self, buffer, host, port):
        self.sent.append((buffer, host, port))

@pytest.fixture
def registry():
    return peers.PeerRegistry()

@pytest.fixture
def transport():
    return RecordingTransport()

@pytest.fixture
def switch(registry, transport):
    return relay.RelaySwitch(registry, transport, timeout = 90)
