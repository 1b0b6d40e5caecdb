"""
Image Resolver
--------------
Finds the physical image file behind a file name declared in an
annotation document.

Lookup order:
 1. exact base-name match anywhere under the input root
 2. same stem with each of CANDIDATE_EXTS, in order

The tree is walked once when the index is built; every lookup after that
is a dict access. When several files share a name, the first one in
sorted path order wins.
"""

from pathlib import Path, PurePosixPath
from typing import Dict, Optional, Union

CANDIDATE_EXTS = ["jpg", "jpeg", "png", "bmp", "tiff", "tif"]


def _base_name(declared_name: str) -> str:
    return PurePosixPath(declared_name.replace("\\", "/")).name


class ImageIndex:
    """name -> path index over every file under `root`."""

    def __init__(self, root: Union[str, Path], exclude: Optional[Union[str, Path]] = None):
        self.root = Path(root)
        # an output tree inside the root holds copies from earlier runs
        self.exclude = Path(exclude).resolve() if exclude is not None else None
        root_resolved = self.root.resolve()
        if self.exclude == root_resolved or self.exclude in root_resolved.parents:
            # root lives inside the excluded tree: nothing left to exclude
            self.exclude = None
        self.by_name: Dict[str, Path] = {}
        for p in sorted(self.root.rglob("*")):
            if p.is_file() and not self._excluded(p):
                self.by_name.setdefault(p.name, p)

    def _excluded(self, path: Path) -> bool:
        return self.exclude is not None and self.exclude in path.resolve().parents

    def __len__(self):
        return len(self.by_name)

    def resolve(self, declared_name: str) -> Optional[Path]:
        name = _base_name(declared_name)
        found = self.by_name.get(name)
        if found is not None:
            return found

        stem = PurePosixPath(name).stem
        for ext in CANDIDATE_EXTS:
            found = self.by_name.get(f"{stem}.{ext}")
            if found is not None:
                return found
        return None


def resolve(input_root: Union[str, Path], declared_name: str) -> Optional[Path]:
    """One-off lookup. Builds a fresh index; use ImageIndex for repeated lookups."""
    return ImageIndex(input_root).resolve(declared_name)
