"""
Reads `git status` for a working tree and turns it into a RepositoryStatus.

Classification of the two-character porcelain code ``XY``:

* ``X`` in ``A``, ``M``, ``R``  -> staged
* ``Y == "M"``                  -> modified (a path can be staged *and* modified)
* ``XY == "??"``                -> untracked
* ``X == "D"`` or ``Y == "D"``  -> deleted

Duplicates across the lists are kept on purpose; deduplication happens when
files are selected for review.
"""
import asyncio
from typing import Dict, List, Optional, Tuple

from config.models import GitConfig
from core.contracts.models import RepositoryStatus
from utils.errors import RepositoryAccessError
from utils.git import git_output, run_git
from utils.logger import logger

STAGED_CODES = frozenset("AMR")
RENAME_CODES = frozenset("RC")
RENAME_SEPARATOR = " -> "

# stderr fragments git prints when the branch simply has no upstream to compare with
NO_UPSTREAM_MARKERS = (
    "no upstream configured",
    "does not point to a branch",
    "no such branch",
    "upstream branch",
)


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting (`"a\\tb"`, octal escapes for non-ASCII bytes)."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    body = path[1:-1]
    try:
        return body.encode("utf-8").decode("unicode_escape").encode("latin-1").decode("utf-8")
    except (UnicodeDecodeError, UnicodeEncodeError):
        return body


StatusLists = Dict[str, List[str]]


def _classify(code: str, path: str, lists: StatusLists) -> None:
    index_status, work_status = code[0], code[1]

    if index_status in STAGED_CODES:
        lists["staged"].append(path)
    if work_status == "M":
        lists["modified"].append(path)
    if index_status == "?" and work_status == "?":
        lists["untracked"].append(path)
    if index_status == "D" or work_status == "D":
        lists["deleted"].append(path)


def _empty_lists() -> StatusLists:
    return {"staged": [], "modified": [], "untracked": [], "deleted": []}


def parse_porcelain(output: str, branch: str = "", ahead: int = 0, behind: int = 0) -> RepositoryStatus:
    """
    Parses line-based `git status --porcelain` output.

    Renames (`R  old -> new`) keep only the new path.
    """
    lists = _empty_lists()
    for line in output.splitlines():
        if len(line) < 4 or not line.strip():
            continue
        code, path = line[:2], line[3:]
        if (code[0] in RENAME_CODES or code[1] in RENAME_CODES) and RENAME_SEPARATOR in path:
            path = path.split(RENAME_SEPARATOR, 1)[1]
        _classify(code, unquote_path(path), lists)
    return RepositoryStatus(branch=branch, ahead=ahead, behind=behind, **lists)


def parse_porcelain_z(output: str, branch: str = "", ahead: int = 0, behind: int = 0) -> RepositoryStatus:
    """
    Parses NUL-terminated `git status --porcelain -z` output.

    A rename entry is followed by an extra field holding the original path, which is dropped.
    """
    lists = _empty_lists()
    fields = output.split("\0")
    i = 0
    while i < len(fields):
        entry = fields[i]
        i += 1
        if len(entry) < 4:
            continue
        code, path = entry[:2], entry[3:]
        if code[0] in RENAME_CODES or code[1] in RENAME_CODES:
            i += 1
        _classify(code, path, lists)
    return RepositoryStatus(branch=branch, ahead=ahead, behind=behind, **lists)


def parse_ahead_behind(output: str) -> Tuple[int, int]:
    """
    Parses `git rev-list --left-right --count HEAD@{upstream}...HEAD` output ("behind<TAB>ahead").

    Returns:
        (ahead, behind)
    """
    parts = output.split()
    try:
        behind = int(parts[0]) if len(parts) > 0 else 0
        ahead = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        raise RepositoryAccessError("Unexpected ahead/behind output from git.")
    return ahead, behind


class RepositoryStatusReader:
    """
    Runs read-only status queries against a working tree.

    The snapshot is rebuilt on every call; the repository may change between runs.
    """

    def __init__(self, config: Optional[GitConfig] = None):
        self.config = config or GitConfig()

    async def status(self, repo_path: str) -> RepositoryStatus:
        """
        Reads branch, ahead/behind counts and the porcelain file listing.

        Raises:
            RepositoryAccessError: If the path is not a repository or a query fails or times out.
        """
        return await asyncio.to_thread(self.read_status, repo_path)

    def read_status(self, repo_path: str) -> RepositoryStatus:
        """Synchronous body of `status`."""
        branch = self._branch(repo_path)
        ahead, behind = self._ahead_behind(repo_path)

        output = git_output(self._status_args(), repo_path, self.config.timeout_sec)
        parse = parse_porcelain_z if self.config.null_terminated else parse_porcelain
        status = parse(output, branch=branch, ahead=ahead, behind=behind)

        logger.debug(
            f"Status of branch '{branch}': {len(status.staged)} staged, {len(status.modified)} modified, "
            f"{len(status.untracked)} untracked, {len(status.deleted)} deleted"
        )
        return status

    def _status_args(self) -> List[str]:
        args = ["status", "--porcelain"]
        args.append("--untracked-files=all" if self.config.include_untracked else "--untracked-files=no")
        if self.config.null_terminated:
            args.append("-z")
        return args

    def _branch(self, repo_path: str) -> str:
        branch = git_output(["branch", "--show-current"], repo_path, self.config.timeout_sec).strip()
        # detached HEAD prints nothing
        return branch or "HEAD"

    def _ahead_behind(self, repo_path: str) -> Tuple[int, int]:
        result = run_git(
            ["rev-list", "--left-right", "--count", "HEAD@{upstream}...HEAD"],
            repo_path,
            self.config.timeout_sec,
        )
        if result.returncode == 0:
            return parse_ahead_behind(result.stdout)

        stderr = result.stderr.lower()
        if any(marker in stderr for marker in NO_UPSTREAM_MARKERS):
            logger.debug("No upstream configured; reporting ahead=0, behind=0")
            return 0, 0

        logger.debug(f"git rev-list exited with {result.returncode}: {result.stderr.strip()}")
        raise RepositoryAccessError("Git command execution failed. Is this a valid repository?")
