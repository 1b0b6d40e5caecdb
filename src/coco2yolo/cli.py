"""
Command line entry point:
- convert:  annotation JSON directory -> YOLO labels
- scan:     preview what a conversion would pick up
- pipeline: full run from a YAML config
- report:   HTML report for an already converted dataset
"""

import argparse
import logging
import pprint
import sys

from .errors import ConversionError
from .pipeline import run_pipeline, setup_logging
from .data.convert_to_yolo import ConvertOptions, convert_directory
from .data.scan_dataset import scan_input_dir

logger = logging.getLogger("coco2yolo")


def build_parser():
    parser = argparse.ArgumentParser(prog="coco2yolo",
                                     description="Convert COCO / DAMM annotations to YOLO format")
    sub = parser.add_subparsers(dest="command")

    # ------------------- convert -------------------
    c = sub.add_parser("convert")
    c.add_argument("--input", "-i", required=True,
                   help="Input directory containing annotation JSON files and images")
    c.add_argument("--output", "-o", required=True, help="Output directory for YOLO files")
    c.add_argument("--format", default="damm", choices=["standard", "damm"],
                   help="'standard' for COCO format, 'damm' for DAMM dataset format")
    c.add_argument("--train-split", type=float, default=0.8)
    c.add_argument("--no-classes", dest="create_classes", action="store_false",
                   help="Do not write classes.txt")
    c.add_argument("--yolo-structure", action="store_true",
                   help="Write train/val images+labels instead of flat label files")
    c.add_argument("--seed", type=int, default=42)
    c.add_argument("--no-progress", dest="progress", action="store_false")
    c.add_argument("--report", action="store_true", help="Generate an HTML report after converting")
    c.add_argument("--log-dir", default=None, help="Also write logs to this directory")

    # ------------------- scan -------------------
    c = sub.add_parser("scan")
    c.add_argument("--path", required=True)

    # --------------------report ---------------------
    r = sub.add_parser("report")
    r.add_argument("--dataset", required=True)
    r.add_argument("--out", default="reports/last_run")
    r.add_argument("--samples", type=int, default=24)

    # ------------------- pipeline (full automation) -------------------
    p = sub.add_parser("pipeline")
    p.add_argument("--config", required=True)

    return parser


def _run_convert(args):
    setup_logging(log_dir=args.log_dir or "logs", save_logs=args.log_dir is not None)

    logger.info("Converting annotations to YOLO format...")
    logger.info(f"Input directory: {args.input}")
    logger.info(f"Output directory: {args.output}")

    options = ConvertOptions(
        format=args.format,
        train_split=args.train_split,
        create_classes=args.create_classes,
        yolo_structure=args.yolo_structure,
        seed=args.seed,
        progress=args.progress,
    )
    summary = convert_directory(args.input, args.output, options)

    if args.report:
        from .reports.report_generator import generate_report
        res = generate_report(args.output, out_dir=f"{args.output}/report")
        print("Report generated:", res["html"])
    return summary


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        if args.command == "convert":
            _run_convert(args)

        elif args.command == "scan":
            pprint.pprint(scan_input_dir(args.path))

        elif args.command == "report":
            from .reports.report_generator import generate_report
            res = generate_report(args.dataset, out_dir=args.out, samples=args.samples)
            print("Report generated:", res["html"])

        elif args.command == "pipeline":
            run_pipeline(args.config)

        else:
            print("\nUse one of the following:")
            print(" convert | scan | report | pipeline\n")
            return 2

    except ConversionError as e:
        logger.error(f"[ERROR] {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
