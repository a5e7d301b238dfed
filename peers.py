"""
peers.py

The switching table. Every hardware address we have seen as the source of a
frame maps to the UDP endpoint it was sent from, so frames addressed to it
can be relayed there.

A peer is bound to the IP address it was first seen from. Since UDP source
addresses can be spoofed and there is no authentication, we refuse to move
an existing hardware address to another host; only the port may change, as
NAT mappings are refreshed from time to time. Checking that is up to the
caller (see `relay.RelaySwitch`), the registry only stores and updates.

The registry is not thread-safe. It is only ever touched from the IOLoop
thread.
"""

import logging
import time

class PeerRecord(object):
    """
    A simple data object which retains information for a peer which has sent
    us at least one frame.
    """
    def __init__(self, hw_address, host, port, last_activity = None):
        self.hw_address = hw_address
        self.host = host
        self.port = port

        if last_activity is None:
            last_activity = time.monotonic()

        self.last_activity = last_activity

    @property
    def endpoint(self):
        return (self.host, self.port)

    def __repr__(self):
        return "PeerRecord(%s => %s:%s)" % (self.hw_address, self.host,
            self.port)

class PeerRegistry(object):
    def __init__(self):
        self._peers = {}

    def learn_or_get(self, hw_address, host, port, now = None):
        """
        Gets the record for a hardware address, creating one if we have never
        seen the address before. An existing record is returned as-is, even
        if the host or port differ.

        :param hw_address The source hardware address of a frame
        :param host The IP address the frame was sent from
        :param port The UDP port the frame was sent from
        :param now Creation timestamp for a new record, defaults to now

        :return (PeerRecord, created) where created is True for a new record
        """
        record = self._peers.get(hw_address)

        if record is not None:
            return record, False

        record = PeerRecord(hw_address, host, port, now)
        self._peers[hw_address] = record

        logging.debug("%s => new peer created. %s => %s:%s", hw_address,
            hw_address, host, port)

        return record, True

    def apply_activity(self, record, host, port, now):
        """
        Records an accepted frame from a peer. The port is updated if the
        peer has rebound it.

        :param record The PeerRecord the frame belongs to
        :param host The IP address the frame was sent from. Must match the
                    record's host
        :param port The UDP port the frame was sent from
        :param now The time the frame was accepted

        :raises ValueError When host does not match the record
        """
        if record.host != host:
            raise ValueError("Activity from %s does not belong to %r" % (
                host, record))

        if record.port != port:
            logging.debug("%s => updating port from %s to %s",
                record.hw_address, record.port, port)

            record.port = port

        if now > record.last_activity:
            record.last_activity = now

    def lookup(self, hw_address):
        """
        :return The PeerRecord for the hardware address, or None if unknown
        """
        return self._peers.get(hw_address)

    def iterate(self):
        """
        Iterates over (hw_address, PeerRecord) pairs. The pairs are taken
        from a snapshot, so records may be evicted while iterating.
        """
        for item in list(self._peers.items()):
            yield item

    def evict(self, hw_address):
        """
        Removes the peer if present.

        :return The removed PeerRecord, or None if there was none
        """
        return self._peers.pop(hw_address, None)

    def __iter__(self):
        return self.iterate()

    def __contains__(self, hw_address):
        return hw_address in self._peers

    def __len__(self):
        return len(self._peers)
