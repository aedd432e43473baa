"""
State management for reconciled function instances.
"""

import json
import os
import shutil
from pathlib import Path
from typing import Optional

from .errors import StateError
from .function.models import PriorInstance
from .ids import is_valid_instance_name


def get_lambdaform_home() -> Path:
    """
    Get the lambdaform home directory.
    
    Returns:
        Path: Home directory (LAMBDAFORM_HOME, default ./.lambdaform)
    """
    home = os.environ.get("LAMBDAFORM_HOME", ".lambdaform")
    return Path(home).resolve()


def get_instance_dir(instance: str) -> Path:
    """
    Get the directory for a specific instance.
    
    Args:
        instance: Instance name
        
    Returns:
        Path: Instance directory
        
    Raises:
        ValueError: If instance name is invalid
    """
    if not is_valid_instance_name(instance):
        raise ValueError(f"Invalid instance name: {instance}")
    
    return get_lambdaform_home() / instance


def create_instance_dir(instance: str) -> Path:
    instance_dir = get_instance_dir(instance)
    instance_dir.mkdir(parents=True, exist_ok=True)
    return instance_dir


def write_instance(instance: str, prior: PriorInstance) -> None:
    """
    Persist the last applied state to state.json.
    
    Args:
        instance: Instance name
        prior: Applied state to record
    """
    instance_dir = create_instance_dir(instance)
    tmp_file = instance_dir / "state.json.tmp"
    
    with open(tmp_file, "w") as f:
        json.dump(prior.to_dict(), f, indent=2)
    os.replace(tmp_file, instance_dir / "state.json")


def read_instance(instance: str) -> Optional[PriorInstance]:
    """
    Read the last applied state from state.json.
    
    Args:
        instance: Instance name
        
    Returns:
        PriorInstance or None if the instance was never deployed

    Raises:
        StateError: If state.json is not valid JSON or lacks required fields
    """
    state_file = get_instance_dir(instance) / "state.json"

    if not state_file.exists():
        return None

    try:
        with open(state_file, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise StateError(f"Cannot read state file {state_file}: {e}") from e

    if not isinstance(data, dict) or not data.get("name"):
        raise StateError(f"Corrupt state file {state_file}: expected an object with a 'name'")

    try:
        return PriorInstance.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise StateError(f"Corrupt state file {state_file}: {e}") from e


def delete_instance(instance: str) -> None:
    """
    Forget an instance's recorded state, keeping its event log.
    
    Args:
        instance: Instance name
    """
    state_file = get_instance_dir(instance) / "state.json"
    state_file.unlink(missing_ok=True)


def purge_instance(instance: str) -> None:
    """Remove the instance directory and all its contents."""
    instance_dir = get_instance_dir(instance)
    
    if instance_dir.exists():
        shutil.rmtree(instance_dir)


def list_instances() -> list[str]:
    """
    List all instance names with recorded state.
    
    Returns:
        Sorted list of instance names
    """
    home = get_lambdaform_home()
    
    if not home.exists():
        return []
    
    instances = []
    for item in home.iterdir():
        if item.is_dir() and is_valid_instance_name(item.name) and (item / "state.json").exists():
            instances.append(item.name)
    
    return sorted(instances)
