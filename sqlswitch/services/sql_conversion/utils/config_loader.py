import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from sqlswitch.config import config as app_global_config
from ..errors import RuleConfigError
from ..rules.rule_config import CATEGORY_CATALOGUE, RuleCategory, RuleConfig, RuleConfigBuilder, preset

logger = logging.getLogger(__name__)


def rule_config_from_dict(data: Optional[Dict[str, Any]]) -> RuleConfig:
    """
    Build a RuleConfig from a mapping of the form::

        preset: minimal
        data_types: {convert_date: true}
        warnings: {max_in_clause_size: 25}

    A missing ``preset`` starts from the configured default preset.
    Unknown categories or toggle names raise RuleConfigError.
    """
    data = dict(data or {})
    preset_name = data.pop("preset", None) or app_global_config.get("rules", {}).get("default_preset", "default")
    builder = RuleConfigBuilder(preset(preset_name))

    known = {category.value for category in CATEGORY_CATALOGUE}
    for key, options in data.items():
        if key not in known:
            raise RuleConfigError(f"Unknown rule category '{key}'. Expected one of: {', '.join(sorted(known))}")
        if options is None:
            continue
        if not isinstance(options, dict):
            raise RuleConfigError(f"Rule category '{key}' must be a mapping of toggle names to values")
        builder.category(RuleCategory(key), **options)
    return builder.build()


def load_rule_config(path: Union[str, Path]) -> RuleConfig:
    """
    Loads a rule configuration file (.json, otherwise YAML).
    """
    config_path = Path(path)
    if not config_path.exists():
        raise RuleConfigError(f"Rule configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            if config_path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise RuleConfigError(f"Could not parse rule configuration {config_path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise RuleConfigError(f"Rule configuration {config_path} must contain a mapping")
    logger.debug(f"Loaded rule configuration from {config_path}")
    return rule_config_from_dict(data)
