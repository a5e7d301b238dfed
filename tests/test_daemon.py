"""
Checks the receiver and the sweep timer running together on a tornado
IOLoop, the way the daemon runs them.
"""

import socket
import time

import tornado.ioloop
from tornado import gen
from tornado.testing import AsyncTestCase, gen_test

import daemon
import settings

from conftest import A, B, BROADCAST, mk_frame

class RelayIOLoopTest(AsyncTestCase):
    def setUp(self):
        super(RelayIOLoopTest, self).setUp()

        self.receiver_server, self.relay_switch = daemon.create_relay(
            "127.0.0.1", 0, timeout = 0)
        self.receiver_server.add_to_ioloop(self.io_loop)

        self.client = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.client.bind(("127.0.0.1", 0))

    def tearDown(self):
        self.client.close()
        self.receiver_server.stop_server()

        super(RelayIOLoopTest, self).tearDown()

    @gen_test
    def test_datagrams_are_handled_on_the_ioloop(self):
        registry = self.relay_switch.registry

        self.client.sendto(mk_frame(BROADCAST, A),
            self.receiver_server.server_address)

        for _ in range(200):
            if A in registry:
                break
            yield gen.sleep(0.01)

        assert registry.lookup(A).endpoint == self.client.getsockname()

    @gen_test
    def test_sweep_timer_evicts_idle_peers(self):
        registry = self.relay_switch.registry
        self.relay_switch.handle_frame(mk_frame(BROADCAST, B), "10.0.0.2",
            5002, now = time.monotonic() - 1)

        sweep_timer = tornado.ioloop.PeriodicCallback(
            self.relay_switch.sweep_timeouts, 10)
        sweep_timer.start()

        try:
            for _ in range(200):
                if B not in registry:
                    break
                yield gen.sleep(0.01)

        finally:
            sweep_timer.stop()

        assert B not in registry

class FakeIOLoop(object):
    """ Records handler registration; start() behaves like Ctrl-C """
    def __init__(self):
        self.handlers = {}

    def add_handler(self, fd, handler, events):
        self.handlers[fd] = handler

    def remove_handler(self, fd):
        del self.handlers[fd]

    def start(self):
        raise KeyboardInterrupt()

class FakePeriodicCallback(object):
    instances = []

    def __init__(self, callback, callback_time):
        self.callback = callback
        self.callback_time = callback_time
        self.running = False

        FakePeriodicCallback.instances.append(self)

    def start(self):
        self.running = True

    def stop(self):
        self.running = False

def test_main_wires_options_and_shuts_down_cleanly(monkeypatch):
    io_loop = FakeIOLoop()
    monkeypatch.setattr(tornado.ioloop.IOLoop, "current",
        staticmethod(lambda *args, **kwargs: io_loop))
    monkeypatch.setattr(tornado.ioloop, "PeriodicCallback",
        FakePeriodicCallback)
    FakePeriodicCallback.instances = []

    created = []
    create_relay = daemon.create_relay

    def recording_create_relay(host, port, timeout):
        relay = create_relay(host, port, timeout)
        created.append(((host, port, timeout), relay))
        return relay

    monkeypatch.setattr(daemon, "create_relay", recording_create_relay)

    # args[0] is the program name
    daemon.main(["lanrelay", "--host=127.0.0.1", "--port=0", "--timeout=5"])

    [(args, (receiver_server, relay_switch))] = created
    assert args == ("127.0.0.1", 0, 5)
    assert relay_switch.sweeper.timeout == 5

    # The sweep interval was not given, so it comes from settings
    [sweep_timer] = FakePeriodicCallback.instances
    assert sweep_timer.callback == relay_switch.sweep_timeouts
    assert sweep_timer.callback_time == settings.sweeper.interval

    # KeyboardInterrupt stopped the timer and closed the socket
    assert not sweep_timer.running
    assert io_loop.handlers == {}
    assert receiver_server.io_loop is None
    assert receiver_server.socket.fileno() == -1
