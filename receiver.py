"""
receiver.py

This module handles receiving and sending tunnelled frames. Frames are sent
via UDP, so we can tolerate loss; nothing is acknowledged or retried.

Unlike a usual socketserver, the receiver does not run its own loop or
threads. The socket is registered with the tornado IOLoop and one datagram is
handled each time it becomes readable. The relay switch and the peer timeout
sweep therefore run on the same thread and never interleave mid-operation.
"""

import logging
import socketserver

import tornado.ioloop

class ReceiverHandler(socketserver.BaseRequestHandler):
    """
    A new handler instance is created for every datagram. The datagram is a
    complete frame which we hand to the relay switch along with the address
    it came from.
    """
    def handle(self):
        data = self.request[0]
        host, port = self.client_address[0:2]

        try:
            self.server.relay_switch.handle_frame(data, host, port)

        except Exception:
            logging.exception("An error occurred handling frame from %s:%s",
                host, port)

class ReceiverServer(socketserver.UDPServer):
    # Never block in handle_request; we are only called once the IOLoop has
    # seen the socket become readable.
    timeout = 0

    def __init__(self, server_address, relay_switch = None,
                 handler = ReceiverHandler):
        # Allow binding to the same address if the app didn't exit cleanly
        self.allow_reuse_address = True

        socketserver.UDPServer.__init__(self, server_address, handler)

        self.relay_switch = relay_switch
        self.io_loop = None

        logging.info("server listening on %s:%s" % self.server_address[0:2])

    def send(self, buffer, host, port):
        """
        Sends a frame to a peer. Delivery is best effort; failures are logged
        and otherwise ignored.

        :param buffer The raw frame
        :param host The peer's IP address
        :param port The peer's UDP port
        """
        try:
            self.socket.sendto(buffer, (host, port))

        except OSError:
            logging.exception("Unable to send frame to %s:%s", host, port)

    def add_to_ioloop(self, io_loop = None):
        """
        Starts handling datagrams on the given (or current) IOLoop.
        """
        if io_loop is None:
            io_loop = tornado.ioloop.IOLoop.current()

        self.io_loop = io_loop
        self.io_loop.add_handler(self.fileno(), self._on_readable,
            tornado.ioloop.IOLoop.READ)

    def _on_readable(self, fd, events):
        self.handle_request()

    def handle_error(self, request, client_address):
        logging.exception("An error occurred handling request from %s",
            client_address)

    def stop_server(self):
        """
        Stop listening and close the socket
        """
        if self.io_loop is not None:
            self.io_loop.remove_handler(self.fileno())
            self.io_loop = None

        self.server_close()
