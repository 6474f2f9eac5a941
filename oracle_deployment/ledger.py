from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, NamedTuple, Optional, Tuple

from eth_typing import ChecksumAddress


class ContractRef(NamedTuple):
    """A deployed contract: its contract type name and its address."""

    contract_name: str
    address: ChecksumAddress


class Transaction(NamedTuple):
    """
    A state-changing operation. A deployment has no target and no method;
    a call has both.
    """

    contract_name: str
    args: Tuple[Any, ...] = ()
    target: Optional[str] = None
    method: Optional[str] = None

    @classmethod
    def deployment(cls, contract_name: str, *args) -> "Transaction":
        return cls(contract_name=contract_name, args=tuple(args))

    @classmethod
    def call(cls, target: ContractRef, method: str, *args) -> "Transaction":
        return cls(
            contract_name=target.contract_name,
            args=tuple(args),
            target=target.address,
            method=method,
        )

    @property
    def is_deployment(self) -> bool:
        return self.target is None

    def __str__(self) -> str:
        if self.is_deployment:
            return f"deploy {self.contract_name}"
        return f"{self.contract_name}[{self.target[:10]}].{self.method}"


class TxHandle(NamedTuple):
    txn_hash: str
    transaction: Transaction


class ReceiptStatus(Enum):
    SUCCESS = 1
    REVERTED = 0


class Receipt(NamedTuple):
    txn_hash: str
    block_number: int
    status: ReceiptStatus
    contract_address: Optional[str] = None

    @property
    def reverted(self) -> bool:
        return self.status == ReceiptStatus.REVERTED


class Ledger(ABC):
    """The only channel between the orchestrator and the chain."""

    @property
    @abstractmethod
    def chain_id(self) -> int:
        raise NotImplementedError

    @property
    @abstractmethod
    def sender(self) -> str:
        """Address that signs submitted transactions."""
        raise NotImplementedError

    @abstractmethod
    def submit(self, transaction: Transaction) -> TxHandle:
        """
        Signs and broadcasts a transaction without waiting for it to be mined.
        Raises TransactionRejected if it cannot be broadcast.
        """
        raise NotImplementedError

    @abstractmethod
    def wait_for_confirmation(
        self, handle: TxHandle, confirmations: int, timeout: Optional[int] = None
    ) -> Receipt:
        """
        Blocks until the transaction has the requested number of confirmations.
        A reverted transaction is returned as a receipt with a REVERTED status;
        raises ConfirmationTimeout if finality is not reached in time.
        """
        raise NotImplementedError

    @abstractmethod
    def read_state(self, contract: ContractRef, method: str, *args) -> Any:
        """Performs a read-only call."""
        raise NotImplementedError
