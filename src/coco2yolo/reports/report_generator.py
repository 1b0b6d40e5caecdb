"""
report_generator.py

Generates a self-contained HTML report for a converted dataset.

Usage:
    from coco2yolo.reports.report_generator import generate_report

    generate_report("output_dataset", out_dir="reports/last_run", samples=24)

Works on both output layouts:
 - split layout: <root>/{train,val}/{images,labels} + classes.txt
 - flat layout:  <root>/*.txt + classes.txt (no images, so no pixel stats or tiles)

Report contains:
 - Summary counts (images, labels, empty labels, per-split sizes)
 - Class-index check (ids in labels vs classes.txt)
 - Class distribution bar chart
 - Normalized bbox area / aspect ratio histograms
 - Count of boxes falling outside the image (values are never clipped)
 - Sample tiles with bbox overlays (split layout only)
"""

import json
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import cv2
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from PIL import Image

from ..data.scan_dataset import IMAGE_EXTS
from ..data.split_dataset import SPLITS

LabelRow = Tuple[int, float, float, float, float]

PLOTS = ["class_distribution.png", "bbox_area_norm_hist.png", "bbox_aspect_ratio_hist.png"]


# --- helper readers -----------------------------------

def _read_yolo_labels(label_path: Path) -> List[LabelRow]:
    text = label_path.read_text(encoding="utf-8").strip()
    if not text:
        return []
    items = []
    for line in text.splitlines():
        parts = line.strip().split()
        if len(parts) != 5:
            continue
        try:
            cls = int(parts[0])
            x, y, w, h = map(float, parts[1:])
        except ValueError:
            continue
        items.append((cls, x, y, w, h))
    return items


def _read_class_ids(classes_file: Path) -> List[int]:
    ids = []
    for line in classes_file.read_text(encoding="utf-8").splitlines():
        name = line.strip()
        if name.startswith("class_") and name[len("class_"):].isdigit():
            ids.append(int(name[len("class_"):]))
    return ids


def _image_size(path: Path) -> Optional[Tuple[int, int]]:
    try:
        with Image.open(path) as im:
            return im.size
    except OSError:
        return None


def _draw_bboxes(img_path: Path, labels: List[LabelRow]) -> np.ndarray:
    img = cv2.imread(str(img_path))
    if img is None:
        # return blank white image of small size
        return np.ones((200, 300, 3), dtype=np.uint8) * 255
    h, w = img.shape[:2]
    out = img.copy()
    for (cls, cx, cy, bw, bh) in labels:
        x1 = int((cx - bw / 2) * w)
        y1 = int((cy - bh / 2) * h)
        x2 = int((cx + bw / 2) * w)
        y2 = int((cy + bh / 2) * h)
        # stable colour per class id
        rng = np.random.RandomState(cls % (2**32))
        color = tuple(int(c) for c in rng.randint(0, 255, 3))
        cv2.rectangle(out, (x1, y1), (x2, y2), color, 2)
        cv2.putText(out, f"class_{cls}", (x1, max(15, y1 - 5)), cv2.FONT_HERSHEY_SIMPLEX, 0.45, color, 1, cv2.LINE_AA)
    return out


# --- plotting helpers -----------------------------------

def _save_figure(fig, out_path: Path):
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(str(out_path), dpi=150, bbox_inches="tight")
    plt.close(fig)


def _plot_class_distribution(class_counts: Counter, out_path: Path):
    fig, ax = plt.subplots(figsize=(8, 4))
    if len(class_counts) == 0:
        ax.text(0.5, 0.5, "No labeled objects found", ha="center", va="center")
    else:
        ids = sorted(class_counts.keys())
        counts = [class_counts[i] for i in ids]
        ax.bar(range(len(ids)), counts)
        ax.set_xticks(range(len(ids)))
        ax.set_xticklabels([f"class_{i}" for i in ids], rotation=45, ha="right")
        ax.set_ylabel("Count")
        ax.set_title("Class distribution")
    _save_figure(fig, out_path)


def _plot_hist(values: List[float], title: str, out_path: Path):
    fig, ax = plt.subplots(figsize=(6, 4))
    if not values:
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
    else:
        ax.hist(values, bins=40)
        ax.set_title(title)
    _save_figure(fig, out_path)


# --- dataset walk -----------------------------------

def _collect_groups(root: Path) -> Dict[str, Tuple[Optional[Path], Path]]:
    """split name -> (images dir or None, labels dir)."""
    groups = {}
    for split in SPLITS:
        if (root / split / "labels").is_dir():
            groups[split] = (root / split / "images", root / split / "labels")
    if not groups:
        groups["flat"] = (None, root)
    return groups


def _find_image(images_dir: Path, stem: str) -> Optional[Path]:
    for p in sorted(images_dir.glob(f"{stem}.*")):
        if p.suffix.lower() in IMAGE_EXTS:
            return p
    return None


# --- main generator -----------------------------------

def generate_report(dataset_root: str, out_dir: str = "reports/last_run", samples: int = 24) -> Dict:
    """
    Generate a visual and metrics report for a converted dataset folder.

    Output: directory containing graphs, summary.json and report_index.html
    Returns: dict with summary and output paths
    """
    root = Path(dataset_root)
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    classes_file = root / "classes.txt"
    listed_ids = _read_class_ids(classes_file) if classes_file.exists() else []

    class_counts = Counter()
    areas_norm = []
    aspect_ratios = []
    out_of_bounds = 0
    empty_label_files = []
    split_sizes = {}
    sample_pairs = []

    for split, (images_dir, labels_dir) in _collect_groups(root).items():
        label_files = sorted(p for p in labels_dir.glob("*.txt") if p.name != "classes.txt")
        split_sizes[split] = len(label_files)

        for label_path in label_files:
            items = _read_yolo_labels(label_path)
            if not items:
                empty_label_files.append(f"{split}/{label_path.name}")

            img_path = _find_image(images_dir, label_path.stem) if images_dir is not None else None
            size = _image_size(img_path) if img_path is not None else None
            if img_path is not None and len(sample_pairs) < samples:
                sample_pairs.append((img_path, items))

            for (cls, cx, cy, bw, bh) in items:
                class_counts[cls] += 1
                areas_norm.append(bw * bh)
                if size is not None and bh != 0:
                    aspect_ratios.append((bw * size[0]) / (bh * size[1]))
                if (cx - bw / 2) < 0 or (cy - bh / 2) < 0 or (cx + bw / 2) > 1 or (cy + bh / 2) > 1:
                    out_of_bounds += 1

    total_labels = sum(split_sizes.values())
    total_instances = sum(class_counts.values())

    # produce plots
    _plot_class_distribution(class_counts, out / "class_distribution.png")
    _plot_hist(areas_norm, "Bounding box area (normalized)", out / "bbox_area_norm_hist.png")
    _plot_hist(aspect_ratios, "BBox aspect ratio (w/h, pixels)", out / "bbox_aspect_ratio_hist.png")

    # sample images tiled with bbox overlay
    tiles = []
    for img_path, items in sample_pairs:
        drawn = _draw_bboxes(img_path, items)
        thumb_path = out / f"sample_{img_path.stem}.jpg"
        cv2.imwrite(str(thumb_path), drawn)
        tiles.append(thumb_path.name)

    seen_ids = sorted(class_counts)
    summary = {
        "total_label_files": total_labels,
        "split_sizes": split_sizes,
        "total_labelled_instances": total_instances,
        "classes_found": len(seen_ids),
        "classes_listed": len(listed_ids),
        "class_index_matches": seen_ids == sorted(listed_ids),
        "avg_bboxes_per_image": (total_instances / total_labels) if total_labels else 0,
        "empty_label_files": len(empty_label_files),
        "out_of_bounds_boxes": out_of_bounds,
    }
    stats_json_path = out / "summary.json"
    stats_json_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")

    # build HTML report
    html_lines = []
    html_lines.append("<html><head><meta charset='utf-8'><title>coco2yolo Dataset Report</title></head><body>")
    html_lines.append("<h1>coco2yolo Dataset Report</h1>")
    html_lines.append(f"<p>Dataset: {root}</p>")
    html_lines.append("<h2>Summary</h2>")
    html_lines.append("<ul>")
    for k, v in summary.items():
        html_lines.append(f"<li><strong>{k}</strong>: {v}</li>")
    html_lines.append("</ul>")

    html_lines.append("<h2>Plots</h2>")
    for fname in PLOTS:
        html_lines.append(f"<h3>{fname.replace('_', ' ')}</h3>")
        html_lines.append(f"<img src='{fname}' width='800'>")

    if tiles:
        html_lines.append("<h2>Sample images (with bounding boxes)</h2>")
        html_lines.append("<div style='display:flex;flex-wrap:wrap'>")
        for t in tiles:
            html_lines.append(f"<div style='margin:8px'><img src='{t}' width='300'></div>")
        html_lines.append("</div>")

    html_lines.append(f"<p>Empty label files: {len(empty_label_files)}</p>")
    if empty_label_files:
        html_lines.append("<details><summary>Empty label files (first 50)</summary><pre>")
        html_lines.append("\n".join(empty_label_files[:50]))
        html_lines.append("</pre></details>")

    html_lines.append("</body></html>")

    html_path = out / "report_index.html"
    html_path.write_text("\n".join(html_lines), encoding="utf-8")

    return {
        "report_dir": str(out.resolve()),
        "summary": summary,
        "stats_json": str(stats_json_path.resolve()),
        "plots": [str((out / p).resolve()) for p in PLOTS],
        "sample_images": [str((out / t).resolve()) for t in tiles],
        "html": str(html_path.resolve())
    }
