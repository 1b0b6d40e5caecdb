"""
pipeline.py
-----------
Config-driven end-to-end conversion run.

Flow:
1. Validate config + set up logging
2. Scan input directory
3. Convert annotations → YOLO labels (flat or train/val layout)
4. Verify written output
5. Optional dataset report
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict

from .data.convert_to_yolo import ConvertOptions, convert_directory
from .data.scan_dataset import scan_input_dir
from .data.split_dataset import SPLITS
from .validators import validate_labels_dir, validate_pipeline_config, validate_yolo_structure

logger = logging.getLogger(__name__)


def setup_logging(log_dir: str = "logs", save_logs: bool = True, level: str = "INFO") -> None:
    """Console logging, plus a timestamped log file when save_logs is set."""
    handlers = [logging.StreamHandler()]
    if save_logs:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"conversion_{datetime.now():%Y%m%d_%H%M%S}.log"
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def options_from_config(conversion: Dict) -> ConvertOptions:
    defaults = ConvertOptions()
    return ConvertOptions(
        format=conversion.get("format", defaults.format),
        train_split=conversion.get("train_split", defaults.train_split),
        create_classes=conversion.get("create_classes", defaults.create_classes),
        yolo_structure=conversion.get("yolo_structure", defaults.yolo_structure),
        seed=conversion.get("seed", defaults.seed),
        progress=conversion.get("progress", defaults.progress),
    )


def run_pipeline(config_path: str) -> Dict:
    """Execute the complete conversion pipeline described by a YAML config."""

    cfg = validate_pipeline_config(config_path)
    dataset = cfg["dataset"]
    conversion = cfg.get("conversion") or {}
    report_cfg = cfg.get("report") or {}
    logging_cfg = cfg.get("logging") or {}

    setup_logging(
        log_dir=logging_cfg.get("log_dir", "logs"),
        save_logs=logging_cfg.get("save_logs", True),
        level=logging_cfg.get("level", "INFO"),
    )

    input_dir = Path(dataset["input_dir"])
    output_dir = Path(dataset["output_dir"])
    options = options_from_config(conversion)

    # ------------------ 1. SCAN ------------------
    logger.info("[1] Scanning input directory...")
    scan = scan_input_dir(input_dir) if input_dir.is_dir() else None
    if scan is not None:
        logger.info(f"    Annotation files: {scan['total_annotation_files']}")
        logger.info(f"    Images:           {scan['total_images']}")

    # ------------------ 2. CONVERT ------------------
    logger.info("[2] Converting annotations to YOLO format...")
    summary = convert_directory(input_dir, output_dir, options)

    # ------------------ 3. VERIFY ------------------
    logger.info("[3] Verifying output...")
    if options.yolo_structure:
        verified = validate_yolo_structure(str(output_dir)) and all(
            validate_labels_dir(str(output_dir / split / "labels")) for split in SPLITS
        )
    else:
        verified = validate_labels_dir(str(output_dir))
    summary["verified"] = verified

    # ------------------ 4. REPORT ------------------
    if report_cfg.get("enabled", False):
        logger.info("[4] Generating dataset report...")
        from .reports.report_generator import generate_report

        report = generate_report(
            str(output_dir),
            out_dir=report_cfg.get("out_dir", str(output_dir / "report")),
            samples=report_cfg.get("samples", 24),
        )
        summary["report"] = report["html"]
        logger.info(f"  -> HTML Report: {report['html']}")

    logger.info("[OK] Pipeline Done Successfully.")
    logger.info(f"Final dataset ready at → {output_dir}")
    return summary
