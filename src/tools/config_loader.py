"""
Configuration loader for clustering profiles and environment variables.
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

import yaml

from src.spatial.dbscan import ClusterParams, DEFAULT_EPSILON, DEFAULT_MIN_POINTS
from src.spatial.distance import DistanceMetric, get_metric


PROFILE_ENV_VAR = "GEOCLUSTER_PROFILE"
DEFAULT_PROFILE = "default"


class ConfigLoader:
    """Load and manage configuration from YAML files and environment."""

    CONFIG_DIR = Path(__file__).parent.parent.parent / "configs"

    @classmethod
    def available_profiles(cls) -> list:
        return sorted(f.stem for f in cls.CONFIG_DIR.glob("*.yaml"))

    @classmethod
    def load_profile(cls, profile_name: str = DEFAULT_PROFILE) -> Dict[str, Any]:
        """
        Load a clustering profile configuration.

        Args:
            profile_name: Name of the profile (default, global, dense-city)

        Returns:
            Dictionary with configuration values

        Raises:
            FileNotFoundError: If profile doesn't exist
        """
        profile_path = cls.CONFIG_DIR / f"{profile_name}.yaml"

        if not profile_path.exists():
            raise FileNotFoundError(
                f"Profile '{profile_name}' not found. "
                f"Available profiles: {', '.join(cls.available_profiles())}"
            )

        with open(profile_path, "r") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def get_profile_from_env(cls) -> Optional[str]:
        """Get profile name from GEOCLUSTER_PROFILE environment variable."""
        return os.getenv(PROFILE_ENV_VAR)

    @classmethod
    def load_default_or_env_profile(cls) -> Dict[str, Any]:
        """
        Load profile from environment variable or use the default profile.

        Returns:
            Configuration dictionary
        """
        profile = cls.get_profile_from_env() or DEFAULT_PROFILE
        return cls.load_profile(profile)


def get_config(profile: Optional[str] = None) -> Dict[str, Any]:
    """Convenience function to get current configuration."""
    if profile:
        return ConfigLoader.load_profile(profile)
    return ConfigLoader.load_default_or_env_profile()


def get_cluster_settings(profile: Optional[str] = None) -> Tuple[ClusterParams, DistanceMetric]:
    """
    Resolve clustering parameters and distance metric from a profile.

    Missing keys fall back to epsilon 0.05, min_points 2, euclidean.

    Raises:
        FileNotFoundError: If the profile doesn't exist
        ValueError: If the profile holds invalid values
    """
    config = get_config(profile)
    params = ClusterParams(
        epsilon=float(config.get("epsilon", DEFAULT_EPSILON)),
        min_points=int(config.get("min_points", DEFAULT_MIN_POINTS)),
    )
    return params, get_metric(config.get("metric"))
