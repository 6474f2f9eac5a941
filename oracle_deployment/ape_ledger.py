from typing import Any, Dict, List, Optional

from ape import networks
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts import ContractInstance
from ape.exceptions import (
    ContractLogicError,
    SignatureError,
    TransactionError,
    TransactionNotFoundError,
)
from web3.exceptions import TimeExhausted

from oracle_deployment.exceptions import (
    ConfirmationTimeout,
    TransactionRejected,
    TransactionReverted,
)
from oracle_deployment.ledger import (
    ContractRef,
    Ledger,
    Receipt,
    ReceiptStatus,
    Transaction,
    TxHandle,
)
from oracle_deployment.networks import get_contract_container, verify_contracts


class ApeLedger(Ledger):
    """
    Ledger backed by an ape account and the connected ape provider.
    ape blocks in `submit` until the transaction is mined and raises on revert, which
    surfaces as TransactionReverted; `wait_for_confirmation` then waits for the
    remaining confirmations.
    """

    def __init__(
        self,
        account: Optional[AccountAPI] = None,
        autosign: bool = False,
        verify: bool = False,
    ):
        if account is None:
            account = select_account()
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        account.set_autosign(autosign)
        self.account = account
        self.verify = verify
        self._deployments: Dict[str, ContractInstance] = dict()

    @property
    def chain_id(self) -> int:
        return networks.provider.network.chain_id

    @property
    def sender(self) -> str:
        return self.account.address

    def describe(self) -> str:
        return "\n".join(
            [
                f"Account: {self.account.address}",
                f"Verify: {self.verify}",
                f"Ecosystem: {networks.provider.network.ecosystem.name}",
                f"Network: {networks.provider.network.name}",
                f"Chain ID: {networks.provider.network.chain_id}",
                f"Gas Price: {networks.provider.gas_price}",
            ]
        )

    def submit(self, transaction: Transaction) -> TxHandle:
        container = get_contract_container(transaction.contract_name)
        try:
            if transaction.is_deployment:
                instance = container.deploy(
                    *transaction.args,
                    sender=self.account,
                    required_confirmations=0,
                )
                self._deployments[instance.address] = instance
                receipt = instance.receipt
            else:
                method = getattr(container.at(transaction.target), transaction.method)
                receipt = method(*transaction.args, sender=self.account, required_confirmations=0)
        except ContractLogicError as e:
            raise TransactionReverted(f"{transaction} reverted: {e}") from e
        except (TransactionError, SignatureError) as e:
            raise TransactionRejected(f"{transaction} was rejected: {e}") from e
        return TxHandle(txn_hash=str(receipt.txn_hash), transaction=transaction)

    def wait_for_confirmation(
        self, handle: TxHandle, confirmations: int, timeout: Optional[int] = None
    ) -> Receipt:
        try:
            receipt: ReceiptAPI = networks.provider.get_receipt(
                handle.txn_hash, required_confirmations=confirmations, timeout=timeout
            )
        except (TransactionNotFoundError, TimeExhausted) as e:
            raise ConfirmationTimeout(
                f"{handle.transaction} not confirmed after {timeout}s: {e}"
            ) from e

        return Receipt(
            txn_hash=str(receipt.txn_hash),
            block_number=receipt.block_number,
            status=ReceiptStatus.REVERTED if receipt.failed else ReceiptStatus.SUCCESS,
            contract_address=receipt.contract_address,
        )

    def read_state(self, contract: ContractRef, method: str, *args) -> Any:
        container = get_contract_container(contract.contract_name)
        instance = container.at(contract.address)
        return getattr(instance, method)(*args)

    def publish(self, addresses: List[str]) -> None:
        """Verifies the source of contracts deployed through this ledger on the explorer."""
        instances = [self._deployments[a] for a in addresses if a in self._deployments]
        verify_contracts(contracts=instances)
