import json
from pathlib import Path
from typing import Any, Dict

import yaml
from eth_utils import is_address, to_checksum_address

from oracle_deployment.constants import ARTIFACTS_DIR


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def get_artifact_filepath(config: Dict, default_filename: str) -> Path:
    """Returns the filepath of the artifact file."""
    artifact_config = config.get("artifacts") or {}
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename") or default_filename
    return artifact_dir / filename


def checksum(value: Any) -> str:
    """Returns the checksum form of an address, raising ValueError for anything else."""
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"'{value}' is not a valid address")
    return to_checksum_address(value)


def same_address(a: Any, b: Any) -> bool:
    if not (isinstance(a, str) and isinstance(b, str)):
        return False
    return a.lower() == b.lower()
