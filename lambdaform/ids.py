"""
Instance name validation and artifact naming utilities.
"""

import re
import time
from typing import Optional

_INSTANCE_NAME = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")


def is_valid_instance_name(instance: str) -> bool:
    """
    Validate instance name format.
    
    Instance names key the local state store, so they must be safe
    directory names: lowercase alphanumerics, dashes and underscores.
    
    Args:
        instance: Name to validate
        
    Returns:
        bool: True if valid format
    """
    return bool(instance) and _INSTANCE_NAME.match(instance) is not None


def slugify_instance_name(raw: str) -> str:
    """
    Turn an arbitrary label (e.g. a directory name) into an instance name.
    
    Args:
        raw: Label to convert
        
    Returns:
        str: Instance name, "default" if nothing usable remains
    """
    slug = re.sub(r"[^a-z0-9_-]+", "-", raw.lower()).strip("-_")
    return slug[:64] or "default"


def artifact_file_name(instance: str, now_ms: Optional[int] = None) -> str:
    """
    Generate an archive file name in format: <instance>-<epoch_ms>.zip
    
    Args:
        instance: Instance name
        now_ms: Timestamp override in milliseconds
        
    Returns:
        str: Unique archive file name
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{instance}-{now_ms}.zip"
