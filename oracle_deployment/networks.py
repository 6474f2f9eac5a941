import os
from typing import List

from ape import networks, project
from ape.api.networks import LOCAL_NETWORK_NAME
from ape.contracts import ContractContainer, ContractInstance


def is_local_network() -> bool:
    return networks.provider.network.name == LOCAL_NETWORK_NAME


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to verify contracts.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    api_key = os.environ.get(explorer_envvar)
    if not api_key:
        raise ValueError(f"{explorer_envvar} is not set.")


def check_plugins(verify: bool) -> None:
    print("Checking plugins...")
    if verify:
        check_etherscan_plugin()


def verify_contracts(contracts: List[ContractInstance]) -> None:
    """Publishes the source of each deployed oracle contract on the network's explorer."""
    if is_local_network():
        print("(i) Local network; skipping contract verification.")
        return
    explorer = networks.provider.network.explorer
    if explorer is None:
        raise ValueError(f"No explorer configured for {networks.provider.network.name}.")
    for instance in contracts:
        print(f"(i) Verifying {instance.contract_type.name} at {instance.address}...")
        explorer.publish_contract(instance.address)


def _find_in_dependencies(contract_name: str) -> ContractContainer:
    matches = list()
    for dependency_name, dependency_versions in project.dependencies.items():
        for version, dependency_api in dependency_versions.items():
            container = getattr(dependency_api, contract_name, None)
            if container is not None:
                matches.append((f"{dependency_name}@{version}", container))
    if not matches:
        raise ValueError(
            f"Contract type '{contract_name}' is not part of the project or its dependencies."
        )
    if len(matches) > 1:
        sources = ", ".join(source for source, _ in matches)
        raise ValueError(f"Contract type '{contract_name}' is ambiguous; found in {sources}.")
    return matches[0][1]


def get_contract_container(contract_name: str) -> ContractContainer:
    """Oracle contract types come from the project first, then from its dependencies."""
    container = getattr(project, contract_name, None)
    if container is None:
        container = _find_in_dependencies(contract_name)
    return container
