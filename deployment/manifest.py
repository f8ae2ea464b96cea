import json
from pathlib import Path
from typing import Any, Dict

from deployment.context import DeploymentManifest
from deployment.utils import _load_json

STANDARD_MANIFEST_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


def _json_default(value: Any) -> Any:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return str(value)


def write_manifest(manifest: DeploymentManifest, filepath: Path, silent: bool = False) -> Path:
    """
    Writes a deployment manifest, keyed by network, to a file.
    An existing file is extended only if it has no entry for the network yet.
    """
    data = {manifest.network: manifest.to_dict()}

    # Create the parent directory if it does not exist
    filepath.parent.mkdir(parents=True, exist_ok=True)

    # If the file already exists, attempt to merge the data, if not create a new file
    if filepath.exists():
        if not silent:
            print(f"Updating existing manifest at {filepath}.")
        existing_data = _load_json(filepath)

        if manifest.network in existing_data:
            filepath = filepath.with_suffix(".unmerged.json")
            if not silent:
                print(
                    f"A manifest for {manifest.network} already exists.\n"
                    f"Writing to {filepath} to avoid overwriting existing data."
                )
        else:
            existing_data.update(data)
            data = existing_data
    elif not silent:
        print(f"Creating new manifest at {filepath}.")

    with open(filepath, "w") as file:
        json.dump(data, file, default=_json_default, **STANDARD_MANIFEST_JSON_FORMAT)

    return filepath


def read_manifest(filepath: Path, network: str) -> Dict[str, Any]:
    """Returns the manifest data recorded for a network."""
    data = _load_json(filepath)
    try:
        return data[network]
    except KeyError:
        raise ValueError(f"No deployment recorded for {network} in {filepath}")


def deployed_contracts(filepath: Path, network: str) -> Dict[str, str]:
    """Returns the confirmed contract addresses recorded for a network, by contract name."""
    entry = read_manifest(filepath, network)
    contracts = dict()
    for contract_name, info in entry.get("contracts", {}).items():
        if info.get("status") == "confirmed" and info.get("address"):
            contracts[contract_name] = info["address"]
    for dependency_name, info in entry.get("dependencies", {}).items():
        if info.get("tx_hash") and info.get("contract"):
            contracts[info["contract"]] = info["address"]
    return contracts
