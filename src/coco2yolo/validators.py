"""
validators.py
--------------
Sanity validators for conversion options, pipeline config and
the written YOLO output tree.

Config problems raise ConfigError before any file is read or written.
"""

import logging
import math
from pathlib import Path

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

FORMATS = ("standard", "damm")


# ============================== #
# Conversion option validation   #
# ============================== #

def validate_convert_options(fmt: str, input_root, train_split: float) -> None:
    if fmt not in FORMATS:
        raise ConfigError(f"Invalid format '{fmt}'. Use 'standard' or 'damm'")

    root = Path(input_root)
    if not root.is_dir():
        raise ConfigError(f"Input directory does not exist: {root}")

    if isinstance(train_split, bool) or not isinstance(train_split, (int, float)):
        raise ConfigError(f"train_split must be a number, got {train_split!r}")
    if not math.isfinite(train_split):
        raise ConfigError(f"train_split must be finite, got {train_split!r}")


# ============================== #
# Config validation              #
# ============================== #

def validate_pipeline_config(config_path: str) -> dict:
    """Load + verify YAML config. Raises ConfigError if malformed."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read pipeline config: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError("Invalid YAML format in pipeline config") from e

    if not isinstance(config, dict):
        raise ConfigError("Pipeline config must be a mapping")

    required_root_keys = ["dataset", "conversion"]
    for k in required_root_keys:
        if k not in config:
            raise ConfigError(f"Missing required config section: {k}")

    for k in ["input_dir", "output_dir"]:
        if k not in (config["dataset"] or {}):
            raise ConfigError(f"Missing required config key: dataset.{k}")

    logger.info("[OK] Config structure looks valid")
    return config


# ============================== #
# Output validation              #
# ============================== #

def validate_yolo_structure(path: str, splits=("train", "val")) -> bool:
    path = Path(path)
    missing = [
        str(path / split / sub)
        for split in splits
        for sub in ("images", "labels")
        if not (path / split / sub).is_dir()
    ]

    if missing:
        logger.error("[ERROR] Invalid YOLO dataset structure.")
        logger.error(f"Missing: {', '.join(missing)}")
        return False

    logger.info("[OK] YOLO structure verified")
    return True


def validate_bbox_format(line: str) -> bool:
    """Shape check only: class id + four numbers. Out-of-range values are allowed."""
    parts = line.split()
    if len(parts) != 5:
        return False

    try:
        int(parts[0])
        values = [float(v) for v in parts[1:]]
    except ValueError:
        return False

    return all(math.isfinite(v) for v in values)


def validate_label_file(file: Path) -> bool:
    return all(validate_bbox_format(l) for l in file.read_text(encoding="utf-8").splitlines())


def validate_labels_dir(label_dir: str) -> bool:
    label_dir = Path(label_dir)
    invalid_files = []

    for f in sorted(label_dir.glob("*.txt")):
        if f.name == "classes.txt":
            continue
        if not validate_label_file(f):
            invalid_files.append(f.name)

    if invalid_files:
        logger.error("[ERROR] Invalid annotations found:")
        for f in invalid_files[:10]:
            logger.error(f"   {f}")
        logger.error(f"Total invalid files: {len(invalid_files)}")
        return False

    logger.info(f"[OK] All label files valid in {label_dir}")
    return True
