from pathlib import Path
from typing import Optional

import pytest
from eth_utils import to_checksum_address

from oracle_deployment.config import parse_config
from oracle_deployment.exceptions import ConfirmationTimeout, TransactionRejected
from oracle_deployment.ledger import (
    ContractRef,
    Ledger,
    Receipt,
    ReceiptStatus,
    Transaction,
    TxHandle,
)

CHAIN_ID = 31337
DEPLOYER = to_checksum_address("0x" + "d" * 40)
REGISTRY_ADDRESS = to_checksum_address("0x" + "e" * 40)
REFERENCE_ADDRESS = "0x10F7Fc1F91Ba351f9C629c5947AD69bD03C05b96"

ONE_ETHER = 10**18
RAY = 10**27


def address_of(n: int) -> str:
    return to_checksum_address(f"0x{n:040x}")


class MockLedger(Ledger):
    """
    In-memory ledger. Every submitted transaction is recorded in order; deployments get
    sequential addresses; `setX(*key, value)` calls are served back by `getX(*key)`.
    """

    def __init__(self, revert_on: Optional[int] = None, timeout_on: Optional[int] = None):
        self.revert_on = revert_on
        self.timeout_on = timeout_on
        self.reject_on = None
        self.submitted = list()
        self.waits = 0
        self.state = dict()
        self.on_wait = None
        self.on_submit = None
        self._next_address = 0x1000

    @property
    def chain_id(self) -> int:
        return CHAIN_ID

    @property
    def sender(self) -> str:
        return DEPLOYER

    @property
    def deployments(self):
        return [tx for tx in self.submitted if tx.is_deployment]

    @property
    def calls(self):
        return [tx for tx in self.submitted if not tx.is_deployment]

    def labels(self):
        """Human readable call order, e.g. 'deploy:PriceOracle', 'setPriceOracle'."""
        return [
            f"deploy:{tx.contract_name}" if tx.is_deployment else tx.method
            for tx in self.submitted
        ]

    def submit(self, transaction: Transaction) -> TxHandle:
        index = len(self.submitted) + 1
        if self.reject_on == index:
            raise TransactionRejected(f"{transaction} rejected")
        if self.on_submit is not None:
            self.on_submit(transaction)
        self.submitted.append(transaction)
        return TxHandle(txn_hash=f"0x{index:064x}", transaction=transaction)

    def wait_for_confirmation(self, handle, confirmations, timeout=None) -> Receipt:
        self.waits += 1
        if self.on_wait is not None:
            self.on_wait()
        index = int(handle.txn_hash, 16)
        if self.timeout_on == index:
            raise ConfirmationTimeout(f"{handle.transaction} timed out")
        if self.revert_on == index:
            return Receipt(
                txn_hash=handle.txn_hash, block_number=index, status=ReceiptStatus.REVERTED
            )

        transaction = handle.transaction
        contract_address = None
        if transaction.is_deployment:
            contract_address = address_of(self._next_address)
            self._next_address += 1
        elif transaction.method.startswith("set") and transaction.args:
            *key, value = transaction.args
            self.state[(transaction.target, transaction.method[3:], _hashable(key))] = value
        return Receipt(
            txn_hash=handle.txn_hash,
            block_number=index,
            status=ReceiptStatus.SUCCESS,
            contract_address=contract_address,
        )

    def read_state(self, contract: ContractRef, method: str, *args):
        assert method.startswith("get")
        return self.state.get((contract.address, method[3:], _hashable(args)))


def _hashable(value):
    if isinstance(value, (list, tuple)):
        return tuple(_hashable(v) for v in value)
    return value


@pytest.fixture
def ledger():
    return MockLedger()


@pytest.fixture
def raw_config(tmp_path: Path):
    return {
        "deployment": {"name": "test", "chain_id": CHAIN_ID},
        "artifacts": {"dir": str(tmp_path / "artifacts"), "filename": "test.json"},
        "protocol": {
            "reference_symbol": "USD",
            "reference_address": REFERENCE_ADDRESS,
            "reference_price": 5848466240000000,
            "confirmations": 1,
            "confirmation_timeout": 10,
        },
        "registry": {"address": REGISTRY_ADDRESS},
        "assets": ["WETH", "DAI", "USDC"],
        "mock_tokens": True,
        "prices": {
            "WETH": ONE_ETHER,
            "DAI": 3690684128600000,
            "USDC": 3677141364160000,
            "USD": 3690684128600000,
        },
        "aggregator_prices": {
            "WETH": ONE_ETHER,
            "DAI": 3690684128600000,
            "USD": 3690684128600000,
        },
        "lending_rates": {
            "WETH": {"borrow_rate": 3 * RAY // 100},
            "DAI": {"borrow_rate": 39 * RAY // 1000},
            "USDC": {"borrow_rate": 39 * RAY // 1000},
        },
    }


@pytest.fixture
def config(raw_config):
    return parse_config("test", raw_config)
