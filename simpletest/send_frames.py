"""
A simple script which pretends to be two peers on the virtual LAN. Run the
daemon first, then run this script against it. Peer A broadcasts, peer B
broadcasts (which A should receive), then A sends B a unicast frame.
"""

import socket
import sys

server_address = ('127.0.0.1', 9938)

if len(sys.argv) > 1:
    server_address = (sys.argv[1], int(sys.argv[2]))

MAC_A = b"\x30\x00\x00\x00\x00\x01"
MAC_B = b"\x30\x00\x00\x00\x00\x02"
BROADCAST = b"\xff" * 6

a = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
b = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

a.settimeout(2)
b.settimeout(2)

to_send = BROADCAST + MAC_A + b"HELLO FROM A"
print("Sending %r to %s" % (to_send, server_address))
a.sendto(to_send, server_address)

to_send = BROADCAST + MAC_B + b"HELLO FROM B"
print("Sending %r to %s" % (to_send, server_address))
b.sendto(to_send, server_address)

data, _ = a.recvfrom(2048)
print("A received %r" % (data,))

to_send = MAC_B + MAC_A + b"UNICAST TO B"
print("Sending %r to %s" % (to_send, server_address))
a.sendto(to_send, server_address)

data, _ = b.recvfrom(2048)
print("B received %r" % (data,))

a.close()
b.close()
