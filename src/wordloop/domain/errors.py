"""Error kinds raised by the core and its adapters."""


class WordloopError(Exception):
    """Base class for all wordloop errors."""


class InvalidInput(WordloopError, ValueError):
    """A malformed quality signal, stage index or session call. Not recoverable."""


class NotAuthorized(WordloopError):
    """A write was attempted without a valid credential."""


class StoreUnavailable(WordloopError):
    """The word store could not be read from or written to."""
