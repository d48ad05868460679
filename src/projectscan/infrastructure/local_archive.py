"""Infrastructure: describe a local file as an upload candidate."""

from __future__ import annotations

import os

from projectscan.domain.entities import FileCandidate


def candidate_from_path(path: str | os.PathLike[str]) -> FileCandidate:
    """Stat *path* without reading it."""
    full = os.path.abspath(path)
    if not os.path.isfile(full):
        raise FileNotFoundError(f"Archive not found: {path}")
    return FileCandidate(name=os.path.basename(full), byte_size=os.path.getsize(full), path=full)
