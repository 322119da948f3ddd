"""
livesync_config.py - The one configuration record the live server runs with.

Built once at startup from layered defaults (serving, watching, browser,
misc), later groups overriding earlier ones, then caller overrides on top.
The record is frozen: nothing changes it after the server starts.
"""

import os
import socket
from dataclasses import asdict, dataclass
from typing import Optional

from livesync_errors import StartupError


# host=None listens on every interface, like browser-sync does
ALL_INTERFACES = "0.0.0.0"
LOCAL_HOST = "localhost"

# chokidar-style names, the same ones browser-sync's watchEvents accepts
EVENT_TYPES = ("add", "change", "unlink", "addDir", "unlinkDir")

SERVER_DEFAULTS = {
    "root": None,       # None -> current working directory
    "host": None,       # None -> all interfaces
    "port": 3000,
    "ui_port": 3001,
}

WATCH_DEFAULTS = {
    "watch": True,
    "watch_events": ("add", "change"),
    "ignore_initial": True,
}

BROWSER_DEFAULTS = {
    "open": False,
    "reload_on_restart": True,
    "notify": True,
    "reload_delay": 0,       # ms
    "reload_debounce": 500,  # ms
    "reload_throttle": 0,    # ms
    "inject_changes": True,  # swap CSS in place instead of reloading
}

MISC_DEFAULTS = {
    "log_file_changes": True,
    "timestamps": True,
}


@dataclass(frozen=True)
class ServerConfiguration:
    # defaults live in the *_DEFAULTS groups; build with build_config()
    root: str
    host: Optional[str]
    port: int
    ui_port: int

    watch: bool
    watch_events: tuple
    ignore_initial: bool

    open: bool
    reload_on_restart: bool
    notify: bool
    reload_delay: int
    reload_debounce: int
    reload_throttle: int
    inject_changes: bool

    log_file_changes: bool
    timestamps: bool

    @property
    def bind_host(self):
        return self.host or ALL_INTERFACES

    @property
    def url(self):
        return f"http://{self.host or LOCAL_HOST}:{self.port}"

    @property
    def ui_url(self):
        return f"http://{self.host or LOCAL_HOST}:{self.ui_port}"

    def external_urls(self):
        """(site, ui) URLs reachable from the LAN, or None when not listening on it."""
        if self.host is not None:
            return None
        ip = external_ip()
        if ip is None:
            return None
        return f"http://{ip}:{self.port}", f"http://{ip}:{self.ui_port}"

    def as_dict(self):
        data = asdict(self)
        data["watch_events"] = list(self.watch_events)
        return data


def external_ip():
    """The address this machine uses to reach the network, or None when offline."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # connecting a UDP socket sends nothing, it only picks a route
        sock.connect(("10.255.255.255", 1))
        return sock.getsockname()[0]
    except OSError:
        return None
    finally:
        sock.close()


def _check_port(name, value):
    if not isinstance(value, int) or isinstance(value, bool) or not 0 < value < 65536:
        raise StartupError(f"{name} must be an integer in 1..65535, got {value!r}")


def _check_root(root):
    if not os.path.isdir(root):
        raise StartupError(f"Serving root is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise StartupError(f"Serving root is not readable: {root}")


def build_config(**overrides):
    """Merge the default groups with `overrides` and validate the result."""
    unknown = set(overrides) - set(
        {**SERVER_DEFAULTS, **WATCH_DEFAULTS, **BROWSER_DEFAULTS, **MISC_DEFAULTS}
    )
    if unknown:
        raise StartupError(f"Unknown config option(s): {', '.join(sorted(unknown))}")

    merged = {
        **SERVER_DEFAULTS,
        **WATCH_DEFAULTS,
        **BROWSER_DEFAULTS,
        **MISC_DEFAULTS,
        **overrides,
    }

    merged["root"] = os.path.abspath(merged["root"] or os.getcwd())
    _check_root(merged["root"])

    _check_port("port", merged["port"])
    _check_port("ui_port", merged["ui_port"])
    if merged["port"] == merged["ui_port"]:
        raise StartupError(f"port and ui_port must differ, both are {merged['port']}")

    events = tuple(merged["watch_events"])
    bad = [e for e in events if e not in EVENT_TYPES]
    if bad:
        raise StartupError(
            f"Unknown watch event(s) {bad}; expected some of {list(EVENT_TYPES)}"
        )
    merged["watch_events"] = events

    for key in ("reload_delay", "reload_debounce", "reload_throttle"):
        value = merged[key]
        if not isinstance(value, int) or value < 0:
            raise StartupError(f"{key} must be a non-negative integer (ms), got {value!r}")

    return ServerConfiguration(**merged)
