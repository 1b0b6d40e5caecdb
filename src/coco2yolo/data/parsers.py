"""
parsers.py
----------
Decoders for the two supported annotation schemas.

standard (COCO):
    {"images": [{"id", "file_name", "width", "height"}, ...],
     "annotations": [{"id", "image_id", "category_id", "bbox": [x, y, w, h]}, ...]}

damm:
    {"annotations": [{"file_name", "width", "height", "image_id",
                      "annotations": [{"category_id", "bbox": [[x1, y1], [x2, y2]]}, ...]}, ...]}

Both return List[UnifiedImage] with corner-form boxes. Fields not needed
downstream (area, iscrowd, segmentation, bbox_mode, categories) are ignored.
"""

import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Union

from .schema import UnifiedAnnotation, UnifiedImage
from ..errors import ConfigError, ParseError


# --- field helpers -----------------------------------

def _load_object(content: str) -> dict:
    try:
        doc = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON ({e})")
    if not isinstance(doc, dict):
        raise ParseError(f"expected a JSON object at top level, got {type(doc).__name__}")
    return doc


def _field(record, key: str, where: str):
    if not isinstance(record, dict):
        raise ParseError(f"{where} must be an object")
    if key not in record:
        raise ParseError(f"{where} is missing required field '{key}'")
    return record[key]


def _list_field(record, key: str, where: str) -> list:
    value = _field(record, key, where)
    if not isinstance(value, list):
        raise ParseError(f"{where}.{key} must be a list")
    return value


def _uint_field(record, key: str, where: str) -> int:
    value = _field(record, key, where)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ParseError(f"{where}.{key} must be a non-negative integer, got {value!r}")
    return value


def _str_field(record, key: str, where: str) -> str:
    value = _field(record, key, where)
    if not isinstance(value, str):
        raise ParseError(f"{where}.{key} must be a string")
    return value


def _number(value, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"{where} must be a number, got {value!r}")
    return float(value)


# --- standard (COCO) ---------------------------------

def parse_standard(content: str) -> List[UnifiedImage]:
    doc = _load_object(content)
    images = _list_field(doc, "images", "document")
    annotations = _list_field(doc, "annotations", "document")

    # image id -> image record; first position wins, last record wins
    image_map: Dict[int, UnifiedImage] = {}
    for i, img in enumerate(images):
        where = f"images[{i}]"
        image_id = _uint_field(img, "id", where)
        image_map[image_id] = UnifiedImage(
            file_name=_str_field(img, "file_name", where),
            width=_uint_field(img, "width", where),
            height=_uint_field(img, "height", where),
        )

    anns_by_img = defaultdict(list)
    for i, ann in enumerate(annotations):
        where = f"annotations[{i}]"
        _uint_field(ann, "id", where)
        image_id = _uint_field(ann, "image_id", where)
        category_id = _uint_field(ann, "category_id", where)
        bbox = _list_field(ann, "bbox", where)
        if len(bbox) != 4:
            raise ParseError(f"{where}.bbox must be [x, y, width, height], got {len(bbox)} values")
        x, y, w, h = (_number(v, f"{where}.bbox[{j}]") for j, v in enumerate(bbox))
        anns_by_img[image_id].append(
            UnifiedAnnotation(bbox=(x, y, x + w, y + h), category_id=category_id)
        )

    for image_id, image in image_map.items():
        image.annotations = anns_by_img.get(image_id, [])
    return list(image_map.values())


# --- DAMM ---------------------------------------------

def _damm_bbox(bbox, where: str):
    if not isinstance(bbox, list) or len(bbox) != 2:
        raise ParseError(f"{where} must be two corner points [[x1, y1], [x2, y2]]")
    corners = []
    for j, point in enumerate(bbox):
        if not isinstance(point, list) or len(point) != 2:
            raise ParseError(f"{where}[{j}] must be a coordinate pair [x, y]")
        corners.extend(_number(v, f"{where}[{j}][{k}]") for k, v in enumerate(point))
    return tuple(corners)


def parse_damm(content: str) -> List[UnifiedImage]:
    doc = _load_object(content)
    records = _list_field(doc, "annotations", "document")

    images = []
    for i, rec in enumerate(records):
        where = f"annotations[{i}]"
        file_name = _str_field(rec, "file_name", where)
        height = _uint_field(rec, "height", where)
        width = _uint_field(rec, "width", where)
        _uint_field(rec, "image_id", where)

        anns = []
        for j, ann in enumerate(_list_field(rec, "annotations", where)):
            ann_where = f"{where}.annotations[{j}]"
            category_id = _uint_field(ann, "category_id", ann_where)
            bbox = _damm_bbox(_field(ann, "bbox", ann_where), f"{ann_where}.bbox")
            anns.append(UnifiedAnnotation(bbox=bbox, category_id=category_id))

        images.append(UnifiedImage(file_name=file_name, width=width, height=height, annotations=anns))
    return images


PARSERS = {
    "standard": parse_standard,
    "damm": parse_damm,
}


def get_parser(fmt: str):
    try:
        return PARSERS[fmt]
    except KeyError:
        raise ConfigError(f"Invalid format '{fmt}'. Use 'standard' or 'damm'")


def parse_annotation_file(path: Union[str, Path], fmt: str) -> List[UnifiedImage]:
    """Read one annotation file and decode it with the parser for `fmt`."""
    parser = get_parser(fmt)
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"cannot read file ({e})", source=str(path)) from e

    try:
        return parser(content)
    except ParseError as e:
        raise ParseError(f"not valid {fmt} format: {e}", source=str(path)) from e
