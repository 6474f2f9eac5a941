import json

import pytest

from oracle_deployment.artifacts import ArtifactEntry, DeploymentArtifacts, read_artifacts
from tests.conftest import DEPLOYER, address_of


def _entry(chain_id, role, address, contract_name="MockAggregator"):
    return ArtifactEntry(
        chain_id=chain_id,
        role=role,
        contract_name=contract_name,
        address=address,
        args=(100, [address_of(1), address_of(2)], b"\x01"),
        tx_hash="0x" + "ab" * 32,
        block_number=7,
        deployer=DEPLOYER,
    )


def test_entries_of_other_chains_are_preserved(tmp_path):
    filepath = tmp_path / "artifacts" / "dev.json"
    DeploymentArtifacts(filepath, chain_id=1).record(_entry(1, "MockAggregator-DAI", address_of(10)))

    artifacts = DeploymentArtifacts(filepath, chain_id=5)
    assert len(artifacts) == 0
    assert "MockAggregator-DAI" not in artifacts
    artifacts.record(_entry(5, "MockAggregator-WETH", address_of(11)))

    with open(filepath) as file:
        data = json.load(file)
    assert list(data) == ["1", "5"]
    assert data["5"]["MockAggregator-WETH"]["address"] == address_of(11)
    assert data["1"]["MockAggregator-DAI"]["args"] == [100, [address_of(1), address_of(2)], "0x01"]
    assert not filepath.with_suffix(".temp.json").exists()

    entries = read_artifacts(filepath)
    assert {(e.chain_id, e.role) for e in entries} == {
        (1, "MockAggregator-DAI"),
        (5, "MockAggregator-WETH"),
    }


def test_roles_are_written_in_order(tmp_path):
    filepath = tmp_path / "dev.json"
    artifacts = DeploymentArtifacts(filepath, chain_id=1)
    for role in ["PriceOracle", "LendingRateOracle", "MockAggregator-DAI"]:
        artifacts.record(_entry(1, role, address_of(len(artifacts) + 1)))

    with open(filepath) as file:
        data = json.load(file)
    assert list(data["1"]) == ["LendingRateOracle", "MockAggregator-DAI", "PriceOracle"]


def test_later_record_replaces_role(tmp_path):
    artifacts = DeploymentArtifacts(tmp_path / "dev.json", chain_id=1)
    artifacts.record(_entry(1, "PriceOracle", address_of(1), contract_name="PriceOracle"))
    artifacts.record(_entry(1, "PriceOracle", address_of(2), contract_name="PriceOracle"))
    assert artifacts.addresses() == {"PriceOracle": address_of(2)}


def test_wrong_chain_is_refused(tmp_path):
    artifacts = DeploymentArtifacts(tmp_path / "dev.json", chain_id=1)
    with pytest.raises(ValueError, match="chain 2"):
        artifacts.record(_entry(2, "PriceOracle", address_of(1)))
    assert not (tmp_path / "dev.json").exists()
