"""
coco_to_yolo.py

Corner-form -> YOLO center-form conversion.

Usage (example):
    from coco2yolo.data.coco_to_yolo import to_center_form, yolo_label_text

    to_center_form((10, 10, 30, 30), 100, 100)
    # -> (0.2, 0.2, 0.2, 0.2)

No clipping is applied: a box that leaves the image produces fractions
outside [0, 1]. Image dimensions are trusted; a zero width or height gives
non-finite values (inf, or nan for 0/0), written to the label as-is.
"""

from typing import List, Tuple

import numpy as np

from .schema import BBox, UnifiedAnnotation, UnifiedImage, YoloAnnotation


def to_center_form(bbox: BBox, img_w: int, img_h: int) -> Tuple[float, float, float, float]:
    """Convert (x1,y1,x2,y2) in pixels to YOLO normalized (xc,yc,w,h)."""
    x1, y1, x2, y2 = bbox
    w = x2 - x1
    h = y2 - y1
    x_c = x1 + w / 2.0
    y_c = y1 + h / 2.0
    # IEEE division: x/0 -> +-inf, 0/0 -> nan
    with np.errstate(divide="ignore", invalid="ignore"):
        out = np.divide([x_c, y_c, w, h], np.array([img_w, img_h, img_w, img_h], dtype=np.float64))
    return tuple(float(v) for v in out)


def from_unified(ann: UnifiedAnnotation, img_w: int, img_h: int) -> YoloAnnotation:
    x_c, y_c, nw, nh = to_center_form(ann.bbox, img_w, img_h)
    return YoloAnnotation(class_id=ann.category_id, x_center=x_c, y_center=y_c, width=nw, height=nh)


def yolo_lines(image: UnifiedImage) -> List[str]:
    return [from_unified(ann, image.width, image.height).to_line() for ann in image.annotations]


def yolo_label_text(image: UnifiedImage) -> str:
    """Full label-file content: one line per box, trailing newline, '' if no boxes."""
    lines = yolo_lines(image)
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
