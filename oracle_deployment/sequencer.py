import signal
import threading
import time
from contextlib import contextmanager
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Tuple

from oracle_deployment.artifacts import ArtifactEntry, DeploymentArtifacts, _jsonable
from oracle_deployment.confirm import _confirm_transaction
from oracle_deployment.constants import DEFAULT_CONFIRMATION_TIMEOUT, DEFAULT_CONFIRMATIONS
from oracle_deployment.exceptions import (
    DeploymentAborted,
    DeploymentFailed,
    TransactionRejected,
    TransactionReverted,
)
from oracle_deployment.ledger import ContractRef, Ledger, Receipt, Transaction
from oracle_deployment.utils import checksum, same_address


class StepStatus(Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


_TRANSITIONS = {
    StepStatus.PENDING: {StepStatus.SUBMITTED, StepStatus.CONFIRMED},
    StepStatus.SUBMITTED: {StepStatus.CONFIRMED, StepStatus.REVERTED},
    StepStatus.CONFIRMED: set(),
    StepStatus.REVERTED: set(),
}


class DeploymentSpec(NamedTuple):
    """What to deploy: the role it will be known by, its contract type and constructor args."""

    role: str
    contract_name: str
    args: Tuple[Any, ...] = ()


class DeploymentRecord:
    """
    Audit trail entry for a single step of a run, either a deployment or a call.
    Moves through PENDING -> SUBMITTED -> CONFIRMED | REVERTED. A deployment reused
    from a previous run goes straight from PENDING to CONFIRMED.
    """

    def __init__(self, step: int, role: str, transaction: Transaction):
        self.step = step
        self.role = role
        self.transaction = transaction
        self.status = StepStatus.PENDING
        self.address: Optional[str] = transaction.target
        self.txn_hash: Optional[str] = None
        self.receipt: Optional[Receipt] = None
        self.reused = False

    def __repr__(self) -> str:
        return f"<DeploymentRecord {self.describe()} {self.status.value}>"

    def describe(self) -> str:
        return f"#{self.step} {self.role}"

    @property
    def contract_name(self) -> str:
        return self.transaction.contract_name

    @property
    def args(self) -> Tuple[Any, ...]:
        return self.transaction.args

    @property
    def is_deployment(self) -> bool:
        return self.transaction.is_deployment

    @property
    def confirmed(self) -> bool:
        return self.status == StepStatus.CONFIRMED

    @property
    def ref(self) -> ContractRef:
        if self.address is None:
            raise ValueError(f"{self.describe()} has no address yet.")
        return ContractRef(contract_name=self.contract_name, address=self.address)

    def advance(self, status: StepStatus) -> None:
        if status not in _TRANSITIONS[self.status]:
            raise RuntimeError(
                f"{self.describe()} cannot move from {self.status.value} to {status.value}"
            )
        self.status = status


class Sequencer:
    """
    Submits one transaction at a time and blocks until the ledger confirms it.
    The first failure halts the sequencer; no further transactions are submitted.
    """

    def __init__(
        self,
        ledger: Ledger,
        artifacts: Optional[DeploymentArtifacts] = None,
        confirmations: int = DEFAULT_CONFIRMATIONS,
        timeout: Optional[int] = DEFAULT_CONFIRMATION_TIMEOUT,
        autosign: bool = True,
        deadline: Optional[float] = None,
    ):
        self.ledger = ledger
        self.artifacts = artifacts
        self.confirmations = confirmations
        self.timeout = timeout
        self.autosign = autosign
        self.records: List[DeploymentRecord] = list()
        self._failure: Optional[DeploymentFailed] = None
        self._abort_reason: Optional[str] = None
        self._deadline = time.monotonic() + deadline if deadline is not None else None

    @property
    def confirmed_records(self) -> List[DeploymentRecord]:
        return [record for record in self.records if record.confirmed]

    @property
    def halted(self) -> bool:
        return self._failure is not None

    def is_confirmed(self, address: str) -> bool:
        """True if the address belongs to a deployment confirmed during this run."""
        for record in self.confirmed_records:
            if record.is_deployment and same_address(record.address, address):
                return True
        return False

    def request_abort(self, reason: str = "abort requested") -> None:
        """Stops the run before the next step; a pending confirmation wait is not interrupted."""
        self._abort_reason = reason

    def deploy_and_confirm(self, spec: DeploymentSpec) -> DeploymentRecord:
        """
        Deploys a contract and waits for the deployment to be confirmed.
        A role already present in the deployment artifacts is reused instead.
        """
        self._check_can_proceed(spec.role)
        transaction = Transaction.deployment(spec.contract_name, *spec.args)
        record = self._new_record(spec.role, transaction)

        existing = self.artifacts.get(spec.role) if self.artifacts is not None else None
        if existing is not None:
            if existing.contract_name != spec.contract_name:
                self._fail(
                    record,
                    ValueError(
                        f"Artifact for {spec.role} is a {existing.contract_name}, "
                        f"expected {spec.contract_name}"
                    ),
                )
            if _jsonable(list(existing.args)) != _jsonable(list(spec.args)):
                self._fail(
                    record,
                    ValueError(
                        f"Artifact for {spec.role} was deployed with arguments {existing.args}, "
                        f"expected {_jsonable(list(spec.args))}; remove the stale entry "
                        "from the artifacts file to redeploy it"
                    ),
                )
            record.address = existing.address
            record.reused = True
            record.advance(StepStatus.CONFIRMED)
            print(f"(i) {spec.role} already deployed at {existing.address}; skipping deployment.")
            return record

        receipt = self._execute(record)
        print(f"(i) {spec.role} deployed at {record.address}.")

        if self.artifacts is not None:
            self.artifacts.record(
                ArtifactEntry(
                    chain_id=self.ledger.chain_id,
                    role=spec.role,
                    contract_name=spec.contract_name,
                    address=record.address,
                    args=list(spec.args),
                    tx_hash=receipt.txn_hash,
                    block_number=receipt.block_number,
                    deployer=self.ledger.sender,
                )
            )
        return record

    def call_and_confirm(self, target: ContractRef, method: str, *args) -> Receipt:
        """Calls a state-changing method and waits for the call to be confirmed."""
        role = f"{target.contract_name}.{method}"
        self._check_can_proceed(role)
        record = self._new_record(role, Transaction.call(target, method, *args))
        return self._execute(record)

    def read(self, target: ContractRef, method: str, *args) -> Any:
        try:
            return self.ledger.read_state(target, method, *args)
        except Exception as e:
            self.halt(f"read {target.contract_name}.{method}", e)

    def halt(self, step: str, cause: Exception) -> None:
        """Records a failure outside of a submitted step; no further steps are accepted."""
        self._failure = DeploymentFailed(step=step, cause=cause, confirmed=self.confirmed_records)
        raise self._failure from cause

    def report(self) -> str:
        lines = [f"{len(self.confirmed_records)}/{len(self.records)} step(s) confirmed:"]
        for record in self.records:
            status = "reused" if record.reused else record.status.value
            line = f"\t{record.describe():<48} {status:<10}"
            if record.is_deployment and record.address:
                line += f" {record.address}"
            lines.append(line.rstrip())
        return "\n".join(lines)

    def _new_record(self, role: str, transaction: Transaction) -> DeploymentRecord:
        record = DeploymentRecord(step=len(self.records) + 1, role=role, transaction=transaction)
        self.records.append(record)
        return record

    def _check_can_proceed(self, role: str) -> None:
        if self._failure is not None:
            raise self._failure
        if self._deadline is not None and time.monotonic() > self._deadline:
            self._abort_reason = self._abort_reason or "deadline exceeded"
        if self._abort_reason is not None:
            step = f"#{len(self.records) + 1} {role}"
            self._failure = DeploymentAborted(
                step=step,
                cause=RuntimeError(self._abort_reason),
                confirmed=self.confirmed_records,
            )
            raise self._failure

    def _fail(self, record: DeploymentRecord, cause: Exception) -> None:
        self.halt(record.describe(), cause)

    def _announce(self, transaction: Transaction) -> None:
        if transaction.is_deployment:
            base_message = f"\nDeploying {transaction.contract_name}"
        else:
            base_message = f"\nTransacting {transaction}"
        if transaction.args:
            pretty_args = "\n\t".join(str(arg) for arg in transaction.args)
            print(f"{base_message} with arguments:\n\t{pretty_args}")
        else:
            print(f"{base_message} with no arguments")

    def _execute(self, record: DeploymentRecord) -> Receipt:
        transaction = record.transaction
        self._announce(transaction)
        if not self.autosign:
            _confirm_transaction(transaction)

        # ledgers may block until mined inside submit, so the interrupt is deferred there too
        with self._deferred_interrupt():
            try:
                handle = self.ledger.submit(transaction)
            except TransactionReverted as e:
                # reverted while being sent
                record.advance(StepStatus.SUBMITTED)
                record.advance(StepStatus.REVERTED)
                self._fail(record, e)
            except Exception as e:
                self._fail(record, e)
            record.txn_hash = handle.txn_hash
            record.advance(StepStatus.SUBMITTED)

            try:
                receipt = self.ledger.wait_for_confirmation(
                    handle, confirmations=self.confirmations, timeout=self.timeout
                )
            except Exception as e:
                self._fail(record, e)

        record.receipt = receipt
        if receipt.reverted:
            record.advance(StepStatus.REVERTED)
            self._fail(
                record,
                TransactionReverted(f"{transaction} reverted in transaction {receipt.txn_hash}"),
            )
        if transaction.is_deployment:
            try:
                record.address = checksum(receipt.contract_address)
            except ValueError:
                # mined without creating a contract; left submitted
                self._fail(
                    record,
                    TransactionRejected(f"No contract address in receipt {receipt.txn_hash}"),
                )
        record.advance(StepStatus.CONFIRMED)
        return receipt

    @contextmanager
    def _deferred_interrupt(self):
        """Turns SIGINT while a transaction is in flight into an abort request for the next step."""
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def _handler(signum, frame):
            print("\n(!) Interrupt received; stopping once the pending transaction is confirmed.")
            self.request_abort("interrupted by operator")

        previous_handler = signal.signal(signal.SIGINT, _handler)
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, previous_handler)
