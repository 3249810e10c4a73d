from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union


def load_class_names(metadata_path: Union[str, Path]) -> List[str]:
    """
    Load the ordered class-name table from a lightweight `names:` mapping:

        names:
          0: person
          1: bicycle
          ...

    Index in the returned list is the model's class index, so ids must run
    0..N-1 without gaps.
    """

    names: Dict[int, str] = {}
    in_names = False

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue

            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            if not left.isdigit():
                # Next top-level key ends the mapping.
                if not raw.startswith((" ", "\t")):
                    break
                continue
            idx = int(left)
            if idx in names:
                raise ValueError(f"Duplicate class id {idx} in {metadata_path}")
            names[idx] = right.strip().strip("'").strip('"')

    if not names:
        raise ValueError(f"No class names found in {metadata_path}")
    expected = list(range(len(names)))
    if sorted(names) != expected:
        raise ValueError(f"Class ids in {metadata_path} must be contiguous from 0, got {sorted(names)}")
    return [names[i] for i in expected]
