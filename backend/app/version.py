"""
PURPOSE: Manage version information for Strategy Forge.

This module reads version data from version.json at the repository root and
exposes it through get_version(). The data is cached after the first read.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

_version_cache: Optional[Dict[str, Any]] = None

VERSION_FILE: Path = Path(__file__).parent.parent.parent / "version.json"


def get_version() -> Dict[str, Any]:
    """
    PURPOSE: Retrieve version information for Strategy Forge.

    Returns:
        Dict[str, Any]: Version string, codename, updated_at and changelog.

    Raises:
        FileNotFoundError: If version.json cannot be found in the repository root.
        json.JSONDecodeError: If version.json is invalid JSON.
    """
    global _version_cache

    if _version_cache is not None:
        return _version_cache

    with open(VERSION_FILE, "r") as f:
        _version_cache = json.load(f)

    return _version_cache
