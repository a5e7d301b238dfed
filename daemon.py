"""
daemon.py

This is the main application server. We run the UDP receiver and the peer
timeout sweep on a single tornado IOLoop in the main thread.

The relay lets hosts on different networks behave as if they were plugged
into one Ethernet switch, by tunnelling their link-layer frames to us over
UDP. This is mostly useful for games and other peer protocols that only work
on a LAN.
"""

import logging

import tornado.ioloop
import tornado.options
from tornado.options import define, options

import settings

import peers
import receiver
import relay

define("host", default = settings.relay.host,
    help = "Address to listen on for tunnelled frames")
define("port", default = settings.relay.port, type = int,
    help = "UDP port to listen on for tunnelled frames")
define("timeout", default = settings.sweeper.timeout, type = int,
    help = "Seconds of inactivity before a peer is dropped")
define("sweep_interval", default = settings.sweeper.interval, type = int,
    help = "Milliseconds between peer timeout sweeps")

def create_relay(host, port, timeout = settings.sweeper.timeout):
    """
    Creates the receiver and the relay switch and wires them together.

    :return (ReceiverServer, RelaySwitch)
    """
    registry = peers.PeerRegistry()

    receiver_server = receiver.ReceiverServer((host, port))
    relay_switch = relay.RelaySwitch(registry, receiver_server, timeout)

    receiver_server.relay_switch = relay_switch

    return receiver_server, relay_switch

def main(args = None):
    options.logging = settings.daemon.log_level
    tornado.options.parse_command_line(args)

    logging.info("Initializing relay daemon")

    receiver_server, relay_switch = create_relay(options.host, options.port,
        options.timeout)

    io_loop = tornado.ioloop.IOLoop.current()
    receiver_server.add_to_ioloop(io_loop)

    # The sweep runs on the same IOLoop as the receiver, so it never runs
    # while a frame is being handled.
    logging.info("setting up peer timeout sweep every %dms",
        options.sweep_interval)

    sweep_timer = tornado.ioloop.PeriodicCallback(
                                        relay_switch.sweep_timeouts,
                                        options.sweep_interval)

    try:
        sweep_timer.start()

        logging.info("Running tornado IOLoop in main thread ...")
        io_loop.start()

    except KeyboardInterrupt:
        # Exit cleanly
        logging.info("KeyboardInterrupt. Exiting")

        sweep_timer.stop()
        receiver_server.stop_server()

    except Exception:
        logging.exception("Unknown exception in main thread. Exiting")

        raise SystemExit(1)

if __name__ == "__main__":
    main()
