"""Errors raised while starting the live server."""


class UsageError(Exception):
    """Bad command line. Reported with the usage line, exit status 1."""


class StartupError(Exception):
    """The server cannot start: bad root directory, bad config or a busy port."""
