"""Exceptions raised across pillar boundaries."""


class LocalCoderError(Exception):
    """Base class for all errors raised by localcoder."""


class TransportError(LocalCoderError):
    """The model server could not be reached or failed mid-stream.

    Fatal to the turn that was running; the host decides whether to retry.
    """
