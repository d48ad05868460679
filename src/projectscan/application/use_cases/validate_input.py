"""Use-case: ValidateInput – accept or reject an archive before any network call."""

from __future__ import annotations

from dataclasses import dataclass

from projectscan.domain.entities import FileCandidate
from projectscan.domain.value_objects import ByteSize

ARCHIVE_EXTENSION = ".zip"
DEFAULT_MAX_SIZE = ByteSize.from_megabytes(400)

WRONG_FILE_TYPE = "wrong file type"
FILE_EMPTY = "file is empty"
FILE_TOO_LARGE = "file too large"


@dataclass(frozen=True)
class Accepted:
    candidate: FileCandidate

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    reason: str
    message: str
    detail: str

    @property
    def accepted(self) -> bool:
        return False


Verdict = Accepted | Rejected


class ValidateInput:
    """Check name and size of a candidate archive. Contents are never read."""

    def __init__(self, max_size: ByteSize = DEFAULT_MAX_SIZE) -> None:
        self._max = max_size

    @property
    def max_size(self) -> ByteSize:
        return self._max

    def execute(self, candidate: FileCandidate) -> Verdict:
        if not candidate.name.endswith(ARCHIVE_EXTENSION):
            return Rejected(
                reason=WRONG_FILE_TYPE,
                message="Please upload a ZIP file containing your project",
                detail=(
                    "Your project must be compressed as a .zip file. "
                    "Most operating systems have built-in zip functionality."
                ),
            )

        if candidate.byte_size <= 0:
            return Rejected(
                reason=FILE_EMPTY,
                message="File is empty",
                detail="The ZIP file appears to be empty. Please check your project and try again.",
            )

        if candidate.byte_size > self._max.value:
            actual = candidate.size
            return Rejected(
                reason=FILE_TOO_LARGE,
                message=f"File size must be less than {self._max.human()}",
                detail=(
                    f"Your file is {actual.as_mb()} ({actual.human()}), but the maximum allowed is "
                    f"{self._max.as_mb()} ({self._max.human()}). Try removing large files like "
                    "videos, images, or node_modules folder."
                ),
            )

        return Accepted(candidate=candidate)
