import json
from pathlib import Path
from typing import List

import yaml

from deployment.constants import PLANS_DIR


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def available_plans() -> List[str]:
    return sorted(p.stem for p in PLANS_DIR.glob("*.yml"))


def plan_filepath(plan: str) -> Path:
    """Returns the filepath of a bundled plan by name, or the argument itself if it is a file."""
    filepath = Path(plan)
    if filepath.suffix in (".yml", ".yaml"):
        if not filepath.exists():
            raise FileNotFoundError(f"No deployment plan found at {filepath}")
        return filepath

    filepath = PLANS_DIR / f"{plan}.yml"
    if not filepath.exists():
        raise ValueError(
            f"No deployment plan named '{plan}'; choose from {', '.join(available_plans())}"
        )
    return filepath
