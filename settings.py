"""
A settings file defined in python code, to make usage simpler than parsing
a configuration file. A simple wrapper object is used over a base dictionary
so we can access keys via attributes rather than dict indexing.

The daemon exposes these values as command line options as well, so these
are only the defaults.
"""

class SettingsDict(dict):
    def __getattr__(self, attr):
        try:
            return dict.__getitem__(self, attr)
        except KeyError:
            raise AttributeError(attr)

    def __setattr__(self, attr, value):
        self[attr] = value

# Relay (UDP listener) settings
relay = SettingsDict({
    "host": "0.0.0.0",
    "port": 9938,
})

# Peer timeout sweep settings
sweeper = SettingsDict({
    "interval": 10000, # Once every 10000ms
    "timeout": 90, # Seconds of inactivity before a peer is dropped
})

daemon = SettingsDict({
    "log_level": "debug",
})
