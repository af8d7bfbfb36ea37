"""Exceptions raised by the clustering core.

Both kinds are recoverable: a transition that raises leaves the session
exactly as it was before the call.
"""


class KMeans3DError(Exception):
    """Base class for clustering-session errors."""


class PreconditionError(KMeans3DError, ValueError):
    """Operation invoked on empty or invalid input.

    Examples: starting a run with no points, assigning with zero centroids,
    or asking for fewer than one cluster.
    """


class InvalidTransition(KMeans3DError, RuntimeError):
    """State-machine transition not permitted from the current state."""
