"""
Configuration utilities for LabMatch.

Provides configuration loading, default values and validation for all
pipeline components.
"""

import copy
import logging
import yaml
from typing import Dict, Any, Optional
from pathlib import Path

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/labmatch.yaml"


def load_config(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load pipeline configuration from a YAML file merged over the defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    defaults = get_default_config()
    if not config_path:
        return defaults

    config_file = Path(config_path)
    if not config_file.exists():
        logger.warning(f"Configuration file {config_path} not found, using defaults")
        return defaults

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse configuration {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration {config_path} must be a mapping")

    merged = merge_configs(defaults, config)
    validate_config(merged)

    logger.info(f"Loaded configuration from {config_path}")
    return merged


def get_default_config() -> Dict[str, Any]:
    """
    Get default pipeline configuration.

    Returns:
        Default configuration dictionary
    """
    return {
        "labs": {
            "left": "CDL",
            "right": "Dynacare"
        },
        "ingestion": {
            "required_columns": ["code", "raw_name"],
            "specimen_required_columns": ["code"]
        },
        "matching": {
            "threshold": 0.35,
            "conflict_margin": 0.15,
            "conflict_top_n": 3,
            "workers": 1,
            "max_comparisons": 25_000_000,
            "max_seconds": 900
        },
        "scoring": {
            "weights": {
                "exact_code": 0.50,
                "exact_name": 0.45,
                "jaccard": 0.35,
                "levenshtein": 0.15,
                "synonym": 0.30,
                "containment": 0.10,
                "components": 0.20,
                "same_type": 0.02
            },
            "thresholds": {
                "jaccard_min": 0.3,
                "levenshtein_min": 0.6,
                "length_ratio_min": 0.5,
                "containment_min": 0.7
            }
        },
        "gates": {
            "allowed_specimen_pairs": [["DEFAULT", "SERUM"]]
        },
        "output": {
            "description": ("Canonical Test Catalog - {left} (enriched with specimen collection data) "
                            "matched against {right}"),
            "variant_examples": 10,
            "indent": 2
        }
    }


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate pipeline configuration.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid

    Raises:
        ConfigurationError: If a section is missing or a value is out of range
    """
    required_sections = ["labs", "matching", "scoring", "gates"]

    for section in required_sections:
        if section not in config:
            raise ConfigurationError(f"Missing required configuration section: {section}")

    labs = config["labs"]
    if not labs.get("left") or not labs.get("right") or labs["left"] == labs["right"]:
        raise ConfigurationError("labs.left and labs.right must be two distinct lab identifiers")

    matching = config["matching"]
    for key in ("threshold", "conflict_margin"):
        value = matching.get(key)
        if not isinstance(value, (int, float)) or not 0 <= value <= 1:
            raise ConfigurationError(f"matching.{key} must be a number between 0 and 1")

    workers = matching.get("workers", 1)
    if not isinstance(workers, int) or workers < 1:
        raise ConfigurationError("matching.workers must be a positive integer")

    for key in ("max_comparisons", "max_seconds"):
        value = matching.get(key)
        if value is not None and (not isinstance(value, (int, float)) or value <= 0):
            raise ConfigurationError(f"matching.{key} must be positive or null")

    weights = config["scoring"].get("weights", {})
    for key, value in weights.items():
        if not isinstance(value, (int, float)) or value < 0:
            raise ConfigurationError(f"scoring.weights.{key} must be a non-negative number")

    pairs = config["gates"].get("allowed_specimen_pairs", [])
    if not isinstance(pairs, list) or any(not isinstance(p, (list, tuple)) or len(p) != 2 for p in pairs):
        raise ConfigurationError("gates.allowed_specimen_pairs must be a list of [tag, tag] pairs")

    return True


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Override configuration

    Returns:
        Merged configuration
    """
    merged = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged
