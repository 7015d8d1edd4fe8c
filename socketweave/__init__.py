"""Socket.IO packet handling, namespace dispatch, engine.io helpers and Redis room broadcasting."""

__version__ = "0.1.0"