import json
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

from eth_typing import ChecksumAddress

from oracle_deployment.utils import _load_json

ChainId = int
RoleName = str


STANDARD_ARTIFACTS_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class ArtifactEntry(NamedTuple):
    """Represents a single confirmed deployment in the artifacts file."""

    chain_id: ChainId
    role: RoleName
    contract_name: str
    address: ChecksumAddress
    args: List[Any]
    tx_hash: str
    block_number: int
    deployer: ChecksumAddress


def read_artifacts(filepath: Path) -> List[ArtifactEntry]:
    data = _load_json(filepath)
    entries = list()
    for chain_id, roles in data.items():
        for role, artifacts in roles.items():
            entry = ArtifactEntry(
                chain_id=int(chain_id),
                role=role,
                contract_name=artifacts["contract_name"],
                address=artifacts["address"],
                args=artifacts.get("args", []),
                tx_hash=artifacts["tx_hash"],
                block_number=artifacts["block_number"],
                deployer=artifacts["deployer"],
            )
            entries.append(entry)
    return entries


def write_artifacts(entries: List[ArtifactEntry], filepath: Path) -> Path:
    """Writes the given entries to the artifacts file, replacing its contents."""

    # Sort entries to enforce common order
    entries = sorted(entries, key=lambda entry: (str(entry.chain_id), entry.role))

    data = defaultdict(dict)
    for entry in entries:
        data[str(entry.chain_id)][entry.role] = {
            "contract_name": entry.contract_name,
            "address": entry.address,
            "args": _jsonable(entry.args),
            "tx_hash": entry.tx_hash,
            "block_number": int(entry.block_number),
            "deployer": entry.deployer,
        }

    # Create the parent directory if it does not exist
    filepath.parent.mkdir(parents=True, exist_ok=True)

    temp_filepath = filepath.with_suffix(".temp.json")
    with open(temp_filepath, "w") as file:
        json.dump(data, file, **STANDARD_ARTIFACTS_JSON_FORMAT)
    temp_filepath.replace(filepath)

    return filepath


def _jsonable(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return value


class DeploymentArtifacts:
    """
    Role name to deployed address mapping for one chain, persisted after every
    confirmed deployment so that an interrupted run can be resumed.
    """

    def __init__(self, filepath: Path, chain_id: ChainId):
        self.filepath = filepath
        self.chain_id = chain_id
        self._entries: Dict[ChainId, Dict[RoleName, ArtifactEntry]] = defaultdict(dict)
        if filepath.exists():
            print(f"(i) Loading deployment artifacts from {filepath}.")
            for entry in read_artifacts(filepath):
                self._entries[entry.chain_id][entry.role] = entry

    def __contains__(self, role: RoleName) -> bool:
        return role in self._entries[self.chain_id]

    def __len__(self) -> int:
        return len(self._entries[self.chain_id])

    def get(self, role: RoleName) -> Optional[ArtifactEntry]:
        return self._entries[self.chain_id].get(role)

    def addresses(self) -> Dict[RoleName, str]:
        return {role: entry.address for role, entry in self._entries[self.chain_id].items()}

    def record(self, entry: ArtifactEntry) -> None:
        if entry.chain_id != self.chain_id:
            raise ValueError(
                f"Artifact for chain {entry.chain_id} cannot be recorded for chain {self.chain_id}."
            )
        self._entries[entry.chain_id][entry.role] = entry
        all_entries = [e for roles in self._entries.values() for e in roles.values()]
        write_artifacts(entries=all_entries, filepath=self.filepath)
