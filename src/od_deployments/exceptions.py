"""Custom exception classes for od-deployments library."""


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class BroadcastParseError(DeploymentError, ValueError):
    """Raised when a broadcast log is malformed or missing required fields."""

    pass


class NameCollisionError(BroadcastParseError):
    """Raised when two broadcast entries resolve to the same canonical name."""

    pass


class RegistryNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when the address registry for a network does not exist."""

    pass


class RegistryWriteError(DeploymentError, OSError):
    """Raised when a registry or address book cannot be written."""

    pass


class NetworkNotFoundError(DeploymentError, ValueError):
    """Raised when requested network is not supported."""

    pass


class ContractNotFoundError(DeploymentError, ValueError):
    """Raised when no registry entry matches a contract query."""

    pass


class AmbiguousContractError(DeploymentError, ValueError):
    """Raised when more than one registry entry matches a contract query."""

    def __init__(self, message: str, candidates=None):
        super().__init__(message)
        self.candidates = list(candidates or [])


class UnknownProposalTypeError(DeploymentError, ValueError):
    """Raised when a proposal type is not recognized."""

    pass


class ProposalInputError(DeploymentError, ValueError):
    """Raised when proposal inputs are missing or inconsistent."""

    pass


class MissingAddressError(DeploymentError, ValueError):
    """Raised when an address book has missing or empty entries."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing values: {', '.join(self.missing)}")


class RPCError(DeploymentError, RuntimeError):
    """Raised when a JSON-RPC request fails."""

    pass


class RegistryParseError(DeploymentError, ValueError):
    """Raised when a persisted registry file cannot be decoded."""

    pass
