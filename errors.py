"""
Error taxonomy for dvsim.

Decode errors are recovered per message; transport and configuration
errors abort the run.
"""


class DvsimError(Exception):
    """Base class for all simulator errors."""


class MalformedMessage(DvsimError, ValueError):
    """A received message has the wrong size or carries out-of-range values."""


class TransportFailure(DvsimError, RuntimeError):
    """Binding, sending or receiving on a node channel failed."""


class ConfigurationError(DvsimError, ValueError):
    """Topology, identity or settings are invalid at startup."""
