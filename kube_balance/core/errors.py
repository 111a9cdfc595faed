# kube_balance/core/errors.py

# -----------------------------
# Base Errors
# -----------------------------

class RebalanceError(Exception):
    """Base class for all rebalancer errors."""
    pass


# -----------------------------
# Cluster Access Errors
# -----------------------------

class ClusterAccessError(RebalanceError):
    """A list/get/patch call against the cluster failed."""
    pass


class ClusterListError(ClusterAccessError):
    """Listing nodes, pods or budgets failed."""
    pass


class OwnerLookupError(ClusterAccessError):
    """A referenced owner object could not be fetched."""
    pass


class OwnerPatchError(ClusterAccessError):
    pass


# -----------------------------
# Eviction Errors
# -----------------------------

class EvictionError(RebalanceError):
    """The eviction request was not accepted."""
    pass


class EvictionRateLimitedError(EvictionError):
    """The API server answered 429 Too Many Requests."""
    pass


class EvictionFailedError(EvictionError):
    pass


# -----------------------------
# Malformed External Data
# -----------------------------

class MalformedDataError(RebalanceError):
    pass


class InvalidSelectorError(MalformedDataError):
    """Label selector cannot be evaluated."""
    pass


class MalformedProfileError(MalformedDataError):
    """WorkloadProfile payload cannot be decoded."""
    pass
