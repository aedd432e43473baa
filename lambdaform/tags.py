"""
Tagging utilities for consistent function tagging.
"""

from typing import Dict, Mapping, Optional


def base_tags(instance: str, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Generate base tags for a managed function.
    
    Args:
        instance: Instance name
        extra: Additional tags to include (override base tags)
        
    Returns:
        Dictionary of tags to apply to the function
    """
    tags = {
        "managed-by": "lambdaform",
        "instance": instance,
    }
    
    if extra:
        tags.update({str(k): str(v) for k, v in extra.items()})
    
    return tags


def parse_user_tags(tag_strings: list[str]) -> Dict[str, str]:
    """
    Parse user-provided tag strings in format "key=value".
    
    Args:
        tag_strings: List of tag strings in "key=value" format
        
    Returns:
        Dictionary of parsed tags
        
    Raises:
        ValueError: If tag string format is invalid
    """
    tags = {}
    
    for tag_str in tag_strings:
        if "=" not in tag_str:
            raise ValueError(f"Invalid tag format: {tag_str}. Expected 'key=value'")
        
        key, value = tag_str.split("=", 1)
        if not key.strip() or not value.strip():
            raise ValueError(f"Invalid tag format: {tag_str}. Key and value must not be empty")
        
        tags[key.strip()] = value.strip()
    
    return tags


def is_managed(tags: Mapping[str, str]) -> bool:
    """
    Check if a function was created by lambdaform based on its tags.
    
    Args:
        tags: Function tags
        
    Returns:
        True if the function carries the managed-by tag
    """
    return tags.get("managed-by") == "lambdaform"
