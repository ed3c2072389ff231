import os
import re
import sys
from typing import List, Optional

from utils.errors import PathTraversalError
from utils.logger import logger

_SEPARATORS = re.compile(r"[/\\]")


def platform_is_case_insensitive() -> bool:
    """Default filesystems on Windows and macOS fold case."""
    return sys.platform.startswith(("win32", "cygwin", "darwin"))


class PathResolver:
    """
    Resolves candidate paths against a trusted base directory.

    The containment check runs on real (symlink-resolved) paths and compares
    whole segments, so `/repo-extra` is never inside `/repo`.
    """

    def __init__(self, case_insensitive: Optional[bool] = None):
        self.case_insensitive = platform_is_case_insensitive() if case_insensitive is None else case_insensitive

    def resolve(self, base: str, candidate: str) -> str:
        """
        Returns the canonical absolute path of `candidate` inside `base`.

        A relative candidate whose leading segments repeat the trailing segments
        of `base` (e.g. base `/work/app`, candidate `app/src/x.ts`) has the overlap
        stripped before joining.

        Raises:
            PathTraversalError: If the resolved path is not contained in `base`.
        """
        if not candidate or "\0" in candidate:
            raise PathTraversalError("Invalid path")

        normalized_base = os.path.normpath(os.path.abspath(base))

        if os.path.isabs(candidate):
            joined = os.path.normpath(candidate)
        else:
            candidate_segments = self._segments(os.path.normpath(candidate))
            overlap = self._overlap(self._segments(normalized_base), candidate_segments)
            joined = os.path.normpath(os.path.join(normalized_base, *candidate_segments[overlap:]))

        real_base = os.path.realpath(normalized_base)
        real_target = os.path.realpath(joined)

        if not self.is_within(real_base, real_target):
            logger.debug(f"Rejected path outside repository: {candidate}")
            raise PathTraversalError(f"Path traversal detected: {candidate}")
        return real_target

    def is_within(self, base: str, target: str) -> bool:
        """Segment-aware containment check. `target == base` counts as inside."""
        base_segments = self._segments(base)
        target_segments = self._segments(target)
        if self.case_insensitive:
            base_segments = [s.lower() for s in base_segments]
            target_segments = [s.lower() for s in target_segments]
        return target_segments[:len(base_segments)] == base_segments

    def _overlap(self, base_segments: List[str], candidate_segments: List[str]) -> int:
        for length in range(min(len(base_segments), len(candidate_segments)), 0, -1):
            if self._equal(base_segments[-length:], candidate_segments[:length]):
                return length
        return 0

    def _equal(self, left: List[str], right: List[str]) -> bool:
        if self.case_insensitive:
            return [s.lower() for s in left] == [s.lower() for s in right]
        return left == right

    @staticmethod
    def _segments(path: str) -> List[str]:
        return [segment for segment in _SEPARATORS.split(path) if segment]
