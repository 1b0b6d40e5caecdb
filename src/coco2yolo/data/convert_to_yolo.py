"""
Annotation JSON → YOLO Dataset
------------------------------
Runs a full conversion: parse every input document, optionally split
into train/val, pair each entry with its image file and write labels.

yolo_structure=True:

output/
 ├── classes.txt
 ├── train/
 │    ├── images/
 │    └── labels/
 └── val/
      ├── images/
      └── labels/

yolo_structure=False (flat): output/<stem>.txt per image, no image copies.

Images whose file cannot be found are skipped and counted; every other
failure aborts the run.
"""

import logging
import random
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from tqdm import tqdm

from .coco_to_yolo import yolo_label_text
from .parsers import parse_annotation_file
from .resolve_images import ImageIndex
from .scan_dataset import find_annotation_files
from .schema import ClassIndex, UnifiedImage
from .split_dataset import SPLITS, split_images
from ..errors import OutputWriteError
from ..validators import validate_convert_options

logger = logging.getLogger(__name__)


@dataclass
class ConvertOptions:
    format: str = "damm"
    train_split: float = 0.8
    create_classes: bool = True
    yolo_structure: bool = False
    seed: int = 42
    progress: bool = True


# --- output helpers -----------------------------------

def _mkdir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteError("create directory", path) from e


def _write_label(path: Path, image: UnifiedImage) -> None:
    try:
        path.write_text(yolo_label_text(image), encoding="utf-8")
    except OSError as e:
        raise OutputWriteError("write output file", path) from e


def _copy_image(src: Path, dst: Path) -> None:
    try:
        shutil.copy2(src, dst)
    except OSError as e:
        raise OutputWriteError(f"copy image {src} to", dst) from e


def _write_classes(class_index: ClassIndex, output_dir: Path) -> Path:
    classes_file = output_dir / "classes.txt"
    try:
        class_index.write(classes_file)
    except OSError as e:
        raise OutputWriteError("write classes file", classes_file) from e
    logger.info(f"Generated classes file: {classes_file}")
    return classes_file


# --- pipeline steps -----------------------------------

def load_images(input_files: Sequence[Union[str, Path]], fmt: str) -> List[UnifiedImage]:
    """Parse every input file in order; the first malformed file aborts."""
    images: List[UnifiedImage] = []
    for path in input_files:
        logger.info(f"Processing: {path}")
        parsed = parse_annotation_file(path, fmt)
        logger.info(f"  -> {len(parsed)} images")
        for image in parsed:
            if image.width == 0 or image.height == 0:
                logger.warning(f"{image.file_name}: zero image size {image.width}x{image.height}, "
                               "label values will be non-finite")
        images.extend(parsed)
    return images


def _write_flat(images: List[UnifiedImage], output_dir: Path, stats: Dict, progress: bool) -> None:
    for image in tqdm(images, desc="Converting", disable=not progress):
        label_file = output_dir / f"{image.stem}.txt"
        _write_label(label_file, image)
        stats["labels_written"] += 1
        stats["total_annotations"] += len(image.annotations)
        logger.debug(f"  -> Generated: {label_file} ({len(image.annotations)} annotations)")


def _write_split(split_name: str, images: List[UnifiedImage], output_dir: Path,
                 image_index: ImageIndex, stats: Dict, progress: bool) -> None:
    img_out = output_dir / split_name / "images"
    lbl_out = output_dir / split_name / "labels"

    for image in tqdm(images, desc=split_name, disable=not progress):
        src = image_index.resolve(image.file_name)
        if src is None:
            stats["missing_images"] += 1
            logger.warning(f"Image not found for '{image.file_name}', skipping")
            continue

        _copy_image(src, img_out / src.name)
        stats["images_copied"] += 1

        label_file = lbl_out / f"{image.stem}.txt"
        _write_label(label_file, image)
        stats["labels_written"] += 1
        stats["total_annotations"] += len(image.annotations)
        logger.debug(f"  -> {split_name}: {src.name} ({len(image.annotations)} annotations)")


def convert_dataset(input_files: Sequence[Union[str, Path]],
                    input_root: Union[str, Path],
                    output_dir: Union[str, Path],
                    options: Optional[ConvertOptions] = None) -> Dict:
    """
    Convert the given annotation files into a YOLO label tree.

    input_root is where source images are looked up (recursively).
    Returns a summary dict with counts and the classes file path.
    """
    options = options or ConvertOptions()
    validate_convert_options(options.format, input_root, options.train_split)

    input_root = Path(input_root)
    out = Path(output_dir)
    _mkdir(out)

    logger.info(f"Using format: {options.format}")
    images = load_images(input_files, options.format)

    # every parsed annotation counts, whether or not its image is found later
    class_index = ClassIndex()
    for image in images:
        class_index.update(image)

    stats = {
        "processed_files": len(input_files),
        "total_images": len(images),
        "total_annotations": 0,
        "train_images": 0,
        "val_images": 0,
        "missing_images": 0,
        "labels_written": 0,
        "images_copied": 0,
    }

    if options.yolo_structure:
        for split_name in SPLITS:
            _mkdir(out / split_name / "images")
            _mkdir(out / split_name / "labels")

        rng = random.Random(options.seed)
        train, val = split_images(images, options.train_split, rng)
        stats["train_images"], stats["val_images"] = len(train), len(val)
        logger.info(f"Split: train={len(train)} | val={len(val)} (seed={options.seed})")

        image_index = ImageIndex(input_root, exclude=out)
        logger.info(f"Indexed {len(image_index)} files under {input_root}")

        for split_name, split_imgs in zip(SPLITS, (train, val)):
            _write_split(split_name, split_imgs, out, image_index, stats, options.progress)
    else:
        _write_flat(images, out, stats, options.progress)

    classes_file = None
    if options.create_classes and len(class_index) > 0:
        classes_file = _write_classes(class_index, out)

    stats["classes"] = class_index.ids()
    stats["classes_file"] = str(classes_file) if classes_file else None
    stats["output_dir"] = str(out)

    logger.info("[OK] Conversion completed!")
    logger.info(f"Processed files:   {stats['processed_files']}")
    logger.info(f"Total images:      {stats['total_images']}")
    logger.info(f"Total annotations: {stats['total_annotations']}")
    if options.yolo_structure:
        logger.info(f"Train: {stats['train_images']} | Val: {stats['val_images']}")
        if stats["missing_images"]:
            logger.warning(f"Missing image files: {stats['missing_images']}")

    return stats


def convert_directory(input_dir: Union[str, Path],
                      output_dir: Union[str, Path],
                      options: Optional[ConvertOptions] = None) -> Dict:
    """Convert every *.json under input_dir, looking up images in the same tree."""
    options = options or ConvertOptions()
    validate_convert_options(options.format, input_dir, options.train_split)

    input_files = find_annotation_files(input_dir)
    if not input_files:
        logger.warning(f"No annotation files (*.json) found under {input_dir}")
    return convert_dataset(input_files, input_dir, output_dir, options)
