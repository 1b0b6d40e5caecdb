"""
schema.py
---------
In-memory representation shared by both annotation schemas.

Both parsers produce UnifiedImage records whose boxes are corner-form
(x1, y1, x2, y2) in absolute pixels. Values are kept exactly as read:
inverted or degenerate boxes pass through untouched.
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Tuple, Union

BBox = Tuple[float, float, float, float]


@dataclass
class UnifiedAnnotation:
    bbox: BBox
    category_id: int


@dataclass
class UnifiedImage:
    file_name: str
    width: int
    height: int
    annotations: List[UnifiedAnnotation] = field(default_factory=list)

    @property
    def base_name(self) -> str:
        """Declared file name without any directory prefix."""
        # annotation files written on Windows use backslashes
        return PurePosixPath(self.file_name.replace("\\", "/")).name

    @property
    def stem(self) -> str:
        return PurePosixPath(self.base_name).stem


@dataclass
class YoloAnnotation:
    """Center-form box, every value a fraction of the image size."""

    class_id: int
    x_center: float
    y_center: float
    width: float
    height: float

    def to_line(self) -> str:
        return (f"{self.class_id} {self.x_center:.6f} {self.y_center:.6f} "
                f"{self.width:.6f} {self.height:.6f}")


class ClassIndex:
    """
    Accumulates the category ids seen during a run.

    Names are placeholders ("class_<id>"); the file is emitted sorted
    ascending by numeric id, one name per line.
    """

    def __init__(self):
        self._names: Dict[int, str] = {}

    def add(self, category_id: int) -> None:
        self._names.setdefault(category_id, f"class_{category_id}")

    def update(self, image: UnifiedImage) -> None:
        for ann in image.annotations:
            self.add(ann.category_id)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, category_id) -> bool:
        return category_id in self._names

    def ids(self) -> List[int]:
        return sorted(self._names)

    def names(self) -> List[str]:
        return [self._names[cid] for cid in self.ids()]

    def write(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        with path.open("w", encoding="utf-8") as fh:
            for name in self.names():
                fh.write(name + "\n")
        return path
