from typing import List, Optional, Sequence


class OracleDeploymentError(Exception):
    """Base class for all oracle deployment errors."""


#
# Configuration
#


class ConfigNotFound(OracleDeploymentError):
    """Raised when no deployment profile matches the requested name."""

    def __init__(self, profile_name: str, available: Sequence[str] = ()):
        self.profile_name = profile_name
        self.available = list(available)
        message = f"No deployment profile named '{profile_name}'"
        if self.available:
            message += f"; available profiles: {', '.join(self.available)}"
        super().__init__(message)


class ConfigMalformed(OracleDeploymentError, ValueError):
    """Raised when a deployment profile is missing fields or contains invalid values."""


#
# Ledger
#


class LedgerError(OracleDeploymentError):
    """Raised by ledger adapters when a transaction cannot be carried through."""


class TransactionRejected(LedgerError):
    """The transaction was refused before or during submission."""


class ConfirmationTimeout(LedgerError):
    """The transaction did not reach the required confirmations in time."""


class TransactionReverted(LedgerError):
    """The ledger finalized the transaction with a failed status."""


#
# Sequencing
#


class DeploymentFailed(OracleDeploymentError):
    """
    Raised when a deployment step cannot be confirmed. Steps confirmed
    before the failure are left in place and reported in `confirmed`.
    """

    def __init__(self, step, cause: Exception, confirmed: Optional[List] = None):
        self.step = step
        self.cause = cause
        self.confirmed = list(confirmed or [])
        super().__init__(f"Step {step} failed: {cause}")


class DeploymentAborted(DeploymentFailed):
    """Raised when a run is stopped between steps by the operator or a deadline."""


class RegistryLeaseError(OracleDeploymentError):
    """Raised when the address registry is claimed twice or used without a valid lease."""


#
# Diagnostics
#


class PairingDropped(UserWarning):
    """Non-fatal: some symbols had a token or a feed, but not both."""

    def __init__(self, symbols: Sequence[str]):
        self.symbols = list(symbols)
        super().__init__(
            f"Symbols without a token/feed pair were dropped: {', '.join(self.symbols)}"
        )
