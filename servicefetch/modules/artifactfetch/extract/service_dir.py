"""Pick the directory holding the installed service after extraction."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from servicefetch.modules.artifactfetch.domain import TopLevelDirectories


def infer_service_dir(
    top_level_dirs: TopLevelDirectories,
    output_dir: Union[str, Path],
    expected: Optional[str] = None,
) -> Path:
    """Return the service root for an extraction.

    ``expected`` wins when it was seen. Otherwise the top-level directory with
    the most files is used, ties going to the lexicographically smallest name.
    When no directory received files the output directory itself is returned.
    """
    output_dir = Path(output_dir)
    if expected and expected in top_level_dirs:
        return output_dir / expected
    if not len(top_level_dirs):
        return output_dir
    counts = top_level_dirs.counts()
    best = min(counts, key=lambda name: (-counts[name], name))
    return output_dir / best
