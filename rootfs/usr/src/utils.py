"""
AcuaponicDuino Bridge Utilities

Helper functions for version detection.
"""

import logging
import os
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

VERSION_ENV = "ACUAPONIC_BRIDGE_VERSION"


def get_version() -> str:
    """
    Get the bridge version.

    Priority:
    1. ACUAPONIC_BRIDGE_VERSION environment variable (set by the container image)
    2. config.yaml add-on manifest in common locations (for local development)
    3. 'dev' as fallback

    Returns:
        str: The version string.
    """
    version = os.getenv(VERSION_ENV)
    if version:
        return version

    script_dir = Path(__file__).resolve().parent
    search_paths = [
        script_dir / "../../../config.yaml",  # Local repo structure
        script_dir / "config.yaml",
        Path("./config.yaml"),
    ]

    for path in search_paths:
        if path.exists():
            try:
                with path.open() as f:
                    if (manifest := yaml.safe_load(f)) and "version" in manifest:
                        return f"{manifest['version']} (local)"
            except (OSError, yaml.YAMLError) as e:
                logger.debug(f"Cannot read version from '{path}': {e}")

    return "dev"
