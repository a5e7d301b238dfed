"""
relay.py

The relay switch. Every datagram received by the daemon carries one
link-layer frame; the switch learns where the frame's source lives and
forwards the frame to wherever its destination lives, or to every other peer
if it is a broadcast. This makes peers on entirely different networks appear
to share a single Ethernet segment.

Peers that stop sending frames are dropped by a periodic sweep. There is no
explicit disconnect in the protocol.
"""

import logging
import time

import frames
from settings import sweeper as sweeper_settings

class SpoofMismatchError(Exception):
    """ Raised when a known hardware address is claimed from another host """
    pass

class UnknownDestinationError(Exception):
    """ Raised when a unicast frame is addressed to a peer we don't know """
    pass

class SelfDestinationError(Exception):
    """ Raised when a peer addresses a frame to itself """
    pass

class PeerSweeper(object):
    """
    Drops peers that have been idle for longer than the timeout. This is
    scheduled independently of frame handling, but on the same IOLoop, so it
    never runs concurrently with it.
    """
    def __init__(self, registry, timeout = sweeper_settings.timeout):
        self.registry = registry
        self.timeout = timeout

    def sweep(self, now = None):
        """
        :param now The current time, defaults to time.monotonic()

        :return A list of the hardware addresses that were evicted
        """
        if now is None:
            now = time.monotonic()

        evicted = []

        for hw_address, peer in self.registry.iterate():
            if now - peer.last_activity > self.timeout:
                self.registry.evict(hw_address)
                evicted.append(hw_address)

                logging.debug("%s => disconnected", hw_address)

        return evicted

class RelaySwitch(object):
    def __init__(self, registry, transport,
                 timeout = sweeper_settings.timeout):
        """
        :param registry The PeerRegistry holding the switching table
        :param transport Anything providing send(buffer, host, port)
        :param timeout Seconds of inactivity before a peer is dropped
        """
        self.registry = registry
        self.transport = transport

        self.sweeper = PeerSweeper(registry, timeout)

    def handle_frame(self, buffer, host, port, now = None):
        """
        Handles one frame received from (host, port). Malformed, spoofed and
        undeliverable frames are dropped and logged; nothing is raised to the
        caller for them.
        """
        if now is None:
            now = time.monotonic()

        try:
            destination, source = frames.parse_addresses(buffer)

        except frames.InvalidFrameError:
            logging.debug("invalid buffer received from %s:%s. ignoring.",
                host, port)
            return

        try:
            self._accept_source(source, host, port, now)

        except SpoofMismatchError:
            logging.debug("%s => peer address mismatch (%s) - ignoring.",
                source, host)
            return

        kind = frames.classify_destination(destination)

        if kind is frames.BROADCAST:
            self._broadcast(buffer, source)

        else:
            try:
                peer = self._resolve_unicast(kind.address, source)

            except UnknownDestinationError:
                logging.debug("unable to send to %s because it is unknown",
                    destination)
                return

            except SelfDestinationError:
                logging.debug("unable to send to %s because the source "
                    "address is the same", destination)
                return

            self.transport.send(buffer, peer.host, peer.port)

            logging.debug("%s => sent to %s", source, destination)

    def sweep_timeouts(self, now = None):
        """
        Evicts idle peers. Called periodically by the daemon.
        """
        return self.sweeper.sweep(now)

    def _accept_source(self, source, host, port, now):
        """
        Learns the frame's source, or verifies it against what we already
        know, and records the activity.

        :raises SpoofMismatchError When the source is bound to another host
        """
        peer, created = self.registry.learn_or_get(source, host, port, now)

        if created:
            logging.debug("%d client(s) connected", len(self.registry))

        # Never rebind a hardware address to a different host. The record is
        # left exactly as it was.
        if peer.host != host:
            raise SpoofMismatchError("%s is bound to %s, not %s" % (
                source, peer.host, host))

        self.registry.apply_activity(peer, host, port, now)

    def _broadcast(self, buffer, source):
        # The source has already been learned, so it is always skipped here
        for hw_address, peer in self.registry.iterate():
            if hw_address == source:
                continue

            self.transport.send(buffer, peer.host, peer.port)

        if len(self.registry) > 1:
            logging.debug("%s => broadcast to %d client(s)", source,
                len(self.registry) - 1)

    def _resolve_unicast(self, destination, source):
        """
        :return The PeerRecord the frame should be sent to

        :raises UnknownDestinationError When the destination is not known
        :raises SelfDestinationError When the destination is the source
        """
        peer = self.registry.lookup(destination)

        if peer is None:
            raise UnknownDestinationError(destination)

        if destination == source:
            raise SelfDestinationError(destination)

        return peer
