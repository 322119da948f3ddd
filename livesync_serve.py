#!/usr/bin/env python3
"""Live-reload dev server: serves a directory on port 3000, admin UI on 3001.

    livesync_serve.py [directory]
"""

import logging
import os
import sys
import threading
import webbrowser

import livereload
from tornado.httpserver import HTTPServer
from tornado.wsgi import WSGIContainer

from livesync_app import create_app
from livesync_config import build_config
from livesync_errors import StartupError, UsageError
from livesync_watcher import LiveWatcher

log = logging.getLogger(__name__)


class LiveServer(livereload.Server):

    def _setup_logging(self):
        # livereload and tornado log through the root handler from setup_logging()
        pass


class ReloadNoticeFilter(logging.Filter):
    """Drops livereload's "Reload N waiters" lines."""

    def filter(self, record):
        return not record.getMessage().startswith("Reload ")


def parse_args(argv):
    """Return the directory to serve, or None for the current one."""
    args = argv[1:]
    if len(args) > 1:
        raise UsageError("Too many arguments!")
    return args[0] if args else None


def change_directory(path):
    try:
        os.chdir(path)
    except OSError as exc:
        raise StartupError(f"Cannot serve {path!r}: {exc.strerror}") from exc
    return os.getcwd()


def setup_logging(timestamps=True, notify=True):
    fmt = "[%(levelname)s] %(message)s"
    if timestamps:
        fmt = "%(asctime)s " + fmt
    logging.basicConfig(
        level=logging.INFO,
        format=fmt,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    if not notify:
        logging.getLogger("livereload").addFilter(ReloadNoticeFilter())


def bootstrap(config):
    """Start the live server and the admin UI; blocks until interrupted."""
    watcher = LiveWatcher(config)
    server = LiveServer(watcher=watcher)
    server.watch(config.root)

    admin = HTTPServer(WSGIContainer(create_app(config, watcher)))
    try:
        admin.listen(config.ui_port, address=config.bind_host)
    except OSError as exc:
        raise StartupError(
            f"Cannot listen on {config.bind_host}:{config.ui_port}: {exc.strerror}"
        ) from exc

    log.info("Local    → %s  (UI → %s)", config.url, config.ui_url)
    external = config.external_urls()
    if external:
        log.info("External → %s  (UI → %s)", *external)

    if config.open:
        # livereload would open the bind address, which may be 0.0.0.0
        opener = threading.Timer(1, webbrowser.open, args=(config.url,))
        opener.daemon = True
        opener.start()

    try:
        server.serve(
            root=config.root,
            port=config.port,
            host=config.bind_host,
            live_css=config.inject_changes,
        )
    except OSError as exc:
        raise StartupError(
            f"Cannot listen on {config.bind_host}:{config.port}: {exc.strerror}"
        ) from exc
    finally:
        watcher.stop()
        admin.stop()


def main(argv=None):
    argv = sys.argv if argv is None else argv
    program = os.path.basename(argv[0]) if argv else "livesync-serve"

    try:
        directory = parse_args(argv)
    except UsageError as exc:
        print(exc, file=sys.stderr)
        print(f"Usage: {program} [directory]", file=sys.stderr)
        return 1

    root = change_directory(directory) if directory is not None else os.getcwd()
    config = build_config(root=root)
    setup_logging(config.timestamps, config.notify)
    bootstrap(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
