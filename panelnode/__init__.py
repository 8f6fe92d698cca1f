"""Path sandboxing, archiving, console throttling and power locking for a game server node."""

__version__ = "0.1.0"