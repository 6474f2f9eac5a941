from typing import Optional, Union

from oracle_deployment.constants import ADDRESSES_PROVIDER_CONTRACT, Role
from oracle_deployment.exceptions import RegistryLeaseError
from oracle_deployment.ledger import ContractRef, Receipt
from oracle_deployment.sequencer import Sequencer
from oracle_deployment.utils import checksum, same_address


class AddressRegistry:
    """
    The protocol's role -> address table (a LendingPoolAddressesProvider).
    Writes require a lease, and only one lease can be held at a time.
    """

    def __init__(self, address: str):
        self.ref = ContractRef(contract_name=ADDRESSES_PROVIDER_CONTRACT, address=checksum(address))
        self._lease: Optional["RegistryLease"] = None

    @property
    def address(self) -> str:
        return self.ref.address

    def claim(self, sequencer: Sequencer) -> "RegistryLease":
        """Claims exclusive write access to the registry for the run driven by `sequencer`."""
        if self._lease is not None and self._lease.active:
            raise RegistryLeaseError(f"Registry at {self.address} is already claimed.")
        self._lease = RegistryLease(registry=self, sequencer=sequencer)
        return self._lease

    def get_role(self, sequencer: Sequencer, role: Role) -> str:
        return sequencer.read(self.ref, role.getter)


class RegistryLease:
    def __init__(self, registry: AddressRegistry, sequencer: Sequencer):
        self.registry = registry
        self.sequencer = sequencer
        self.active = True

    def release(self) -> None:
        self.active = False

    def __enter__(self) -> "RegistryLease":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


def set_role(lease: RegistryLease, role: Union[Role, str], address: str) -> Optional[Receipt]:
    """
    Points a registry role at a contract deployed and confirmed during this run.
    Returns None without submitting anything when the registry already holds the address.
    """
    if not lease.active:
        raise RegistryLeaseError("Registry lease has been released.")
    role = Role(role)
    registry, sequencer = lease.registry, lease.sequencer

    if not sequencer.is_confirmed(address):
        sequencer.halt(
            f"set {role.value}", ValueError(f"{address} is not a confirmed deployment of this run")
        )

    current = registry.get_role(sequencer, role)
    if same_address(current, address):
        print(f"(i) Registry {role.value} already points to {address}.")
        return None

    receipt = sequencer.call_and_confirm(registry.ref, role.setter, address)
    print(f"(i) Registry {role.value} set to {address}.")
    return receipt
