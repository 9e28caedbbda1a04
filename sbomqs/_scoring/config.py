"""YAML configuration for selecting checks.

A config file is a list of categories, each with its features:

    - name: NTIA-minimum-elements
      enabled: true
      features:
        - name: comp_with_name
          enabled: true
        - name: comp_with_version
          enabled: false

Enabled features of enabled categories become a feature filter.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema
import yaml

from ..exceptions import ConfigurationError
from ..logging_config import logger
from .filters import ScoreFilter, normalize_feature
from .protocol import Category
from .registry import CheckRegistry

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["name"],
        "properties": {
            "name": {"type": "string", "minLength": 1},
            "enabled": {"type": "boolean"},
            "features": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {
                        "name": {"type": "string", "minLength": 1},
                        "enabled": {"type": "boolean"},
                        "description": {"type": "string"},
                    },
                },
            },
        },
    },
}


def parse_config(data: Any, registry: Optional[CheckRegistry] = None) -> ScoreFilter:
    """
    Translate decoded config data into a ScoreFilter.

    Args:
        data: Decoded YAML document
        registry: Registry used to expand categories listed without features

    Returns:
        Feature filter of the enabled checks

    Raises:
        ConfigurationError: If the data does not match the config schema,
            names an unknown category or enables no checks
    """
    try:
        jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path)
        raise ConfigurationError(f"Invalid config{f' at {path}' if path else ''}: {e.message}") from e

    features: List[str] = []
    for entry in data:
        try:
            category = Category.from_name(entry["name"])
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if not entry.get("enabled", True):
            logger.debug(f"Config disables category {category.value}")
            continue

        listed = entry.get("features")
        if listed is None and registry is not None:
            features.extend(c.qualified_key for c in registry.checks_in(category))
            continue

        for feature in listed or []:
            if feature.get("enabled", True):
                features.append(f"{category.value}:{normalize_feature(feature['name'])}")

    if not features:
        raise ConfigurationError("Config enables no checks")
    return ScoreFilter.create(features=features)


def load_config_file(path: Union[str, Path], registry: Optional[CheckRegistry] = None) -> ScoreFilter:
    """
    Load a YAML config file into a ScoreFilter.

    Raises:
        ConfigurationError: If the file cannot be read, is not YAML or is invalid
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {path} is not valid YAML: {e}") from e

    logger.debug(f"Loaded scoring config from {path}")
    return parse_config(data, registry)


def generate_default_config(registry: CheckRegistry) -> str:
    """Dump every registered check as an enabled config entry."""
    config = [
        {
            "name": category.value,
            "enabled": True,
            "features": [
                {"name": check.key, "enabled": True, "description": check.description}
                for check in registry.checks_in(category)
            ],
        }
        for category in registry.categories
    ]
    return yaml.safe_dump(config, sort_keys=False)
