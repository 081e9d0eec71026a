# src/icartifact/utils/config.py
from pathlib import Path
from typing import Optional, Union

import yaml
from schema import And, Optional as SchemaOptional, Or, Schema, SchemaError

from icartifact.detection.types import (
    DEFAULT_TARGET_LABEL,
    DEFAULT_THRESHOLD,
    DetectionConfig,
)
from icartifact.errors import MalformedInputError

from .logging import message

CONFIG_SCHEMA = Schema(
    {
        "detection": {
            SchemaOptional("target_label"): And(str, len),
            SchemaOptional("threshold"): And(Or(int, float), lambda v: not isinstance(v, bool)),
            SchemaOptional("ddof"): Or(0, 1),
            SchemaOptional("output_dir"): Or(str, None),
        }
    }
)


def load_detection_config(config_file: Union[str, Path]) -> DetectionConfig:
    """Load and validate a detection configuration file.

    Parameters
    ----------
    config_file : str or Path
        YAML file with a top-level ``detection`` section.

    Returns
    -------
    DetectionConfig
        Configuration with defaults for every key the file leaves out.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    MalformedInputError
        If the YAML cannot be parsed or does not match the schema.
    """

    config_path = Path(config_file)
    message("info", f"Loading config: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        try:
            raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise MalformedInputError(f"Invalid YAML in {config_path}: {str(e)}") from e

    try:
        detection = CONFIG_SCHEMA.validate(raw_config)["detection"]
    except SchemaError as e:
        raise MalformedInputError(f"Invalid configuration in {config_path}: {str(e)}") from e

    output_dir = detection.get("output_dir")
    if output_dir is not None:
        # Relative output paths are resolved against the config file
        output_dir = Path(output_dir)
        if not output_dir.is_absolute():
            output_dir = config_path.parent / output_dir

    return DetectionConfig(
        threshold=detection.get("threshold", DEFAULT_THRESHOLD),
        target_label=detection.get("target_label", DEFAULT_TARGET_LABEL),
        output_dir=output_dir,
        ddof=detection.get("ddof", 0),
    )


def merge_overrides(
    config: DetectionConfig,
    threshold: Optional[float] = None,
    target_label: Optional[str] = None,
    output_dir: Optional[Union[str, Path]] = None,
) -> DetectionConfig:
    """Return ``config`` with any non-None override applied."""

    return DetectionConfig(
        threshold=config.threshold if threshold is None else threshold,
        target_label=config.target_label if target_label is None else target_label,
        output_dir=config.output_dir if output_dir is None else output_dir,
        ddof=config.ddof,
    )
