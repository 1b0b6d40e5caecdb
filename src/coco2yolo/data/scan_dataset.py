"""
Dataset Scanner
----------------
Scans an input directory for annotation documents (*.json) and
source images before a conversion run.

Used by:
- convert_directory() to discover the input files
- the `scan` CLI command to preview what a run would pick up
"""

from pathlib import Path
from typing import Dict, List, Union

IMAGE_EXTS = [".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif"]


def find_files(root: Path, extensions: List[str]) -> List[Path]:
    return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in extensions)


def find_annotation_files(root: Union[str, Path]) -> List[Path]:
    return find_files(Path(root), [".json"])


def scan_input_dir(input_dir: Union[str, Path]) -> Dict:
    root = Path(input_dir)

    json_files = find_annotation_files(root)
    images = find_files(root, IMAGE_EXTS)

    by_ext: Dict[str, int] = {}
    for img in images:
        ext = img.suffix.lower()
        by_ext[ext] = by_ext.get(ext, 0) + 1

    result = {
        "annotation_files": [str(p) for p in json_files],
        "total_annotation_files": len(json_files),
        "total_images": len(images),
        "images_by_extension": by_ext,
        "image_dirs": sorted({str(img.parent) for img in images}),
        "has_problems": len(json_files) == 0,
    }

    return result


if __name__ == "__main__":
    import pprint
    path = input("Enter input directory: ")
    pprint.pprint(scan_input_dir(path))
