"""
Exception hierarchy for the Microhal chatbot.

Components raise these; only the response orchestrator and the processing
service decide what to do with them.
"""


class MicrohalError(Exception):
    """Base class for every error raised by Microhal."""


class UnknownPrefixError(MicrohalError, LookupError):
    """Raised when a chain holds no observations for the requested prefix."""

    def __init__(self, prefix):
        self.prefix = prefix
        super().__init__(f"No such prefix: {prefix!r}")


class EmptyDistributionError(MicrohalError):
    """Raised when drawing from a suffix distribution with zero total weight."""


class ConfigurationError(MicrohalError, ValueError):
    """Raised for invalid orders, response lengths or configuration values."""


class PersistenceError(MicrohalError):
    """Raised when an instance document cannot be read, decoded or written."""
