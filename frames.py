"""
frames.py

Reads the addressing information out of tunnelled link-layer frames. A frame
arrives as the payload of a UDP datagram and is laid out as:
<destination (6 bytes)><source (6 bytes)><payload>

Only the two address fields are ever looked at. The payload is opaque and is
relayed untouched.
"""

import collections

HW_ADDRESS_LEN = 6
MIN_FRAME_LEN = 2 * HW_ADDRESS_LEN

BROADCAST_ADDRESS = "ff:ff:ff:ff:ff:ff"

class InvalidFrameError(Exception):
    """ Raised when a buffer is too short to hold both address fields """
    pass

def format_hw_address(raw):
    """
    Formats raw hardware address bytes as a colon separated, lowercase hex
    string. This is the form used as a key in the peer registry.
    """
    return ":".join("%02x" % b for b in bytearray(raw))

def parse_addresses(buffer):
    """
    Extracts the destination and source hardware addresses from a frame.

    :param buffer The raw frame

    :return A (destination, source) tuple of formatted hardware addresses

    :raises InvalidFrameError When the buffer is shorter than 12 bytes
    """
    if len(buffer) < MIN_FRAME_LEN:
        raise InvalidFrameError(
                "Frame of %d bytes is too short, need at least %d" % (
                    len(buffer), MIN_FRAME_LEN)
            )

    destination = format_hw_address(buffer[0:HW_ADDRESS_LEN])
    source = format_hw_address(buffer[HW_ADDRESS_LEN:MIN_FRAME_LEN])

    return destination, source

class Broadcast(object):
    """ Destination kind for frames that go to every other peer """
    address = BROADCAST_ADDRESS

    def __repr__(self):
        return "Broadcast()"

BROADCAST = Broadcast()

# Destination kind for frames addressed to a single peer
Unicast = collections.namedtuple("Unicast", ["address"])

def classify_destination(address):
    """
    Returns `BROADCAST` for the all-ones address, otherwise a `Unicast`
    wrapping the address.
    """
    if address == BROADCAST_ADDRESS:
        return BROADCAST

    return Unicast(address)
