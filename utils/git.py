import os
import subprocess
from typing import List, Optional

from utils.errors import RepositoryAccessError
from utils.logger import logger

DEFAULT_TIMEOUT_SEC = 10


def run_git(args: List[str], cwd: str, timeout: Optional[float] = DEFAULT_TIMEOUT_SEC) -> subprocess.CompletedProcess:
    """
    Runs a git command and returns the completed process without checking the exit code.

    Raises:
        RepositoryAccessError: If git cannot be started or the command times out.
            The message never contains raw OS or git error text.
    """
    if not os.path.isdir(cwd):
        raise RepositoryAccessError("Repository path is not an accessible directory.")

    command = ["git", *args]
    try:
        return subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError:
        raise RepositoryAccessError("Git is not installed or not in PATH.")
    except subprocess.TimeoutExpired:
        logger.debug(f"git {' '.join(args)} timed out after {timeout}s")
        raise RepositoryAccessError("Git command timed out.")
    except OSError as e:
        logger.debug(f"git {' '.join(args)} could not be started: {e}")
        raise RepositoryAccessError("Git command could not be started.")


def git_output(args: List[str], cwd: str, timeout: Optional[float] = DEFAULT_TIMEOUT_SEC) -> str:
    """
    Runs a git command and returns its stdout.

    Raises:
        RepositoryAccessError: If the command fails. The git stderr is only logged at DEBUG.
    """
    result = run_git(args, cwd, timeout)
    if result.returncode != 0:
        logger.debug(f"git {' '.join(args)} exited with {result.returncode}: {result.stderr.strip()}")
        raise RepositoryAccessError("Git command execution failed. Is this a valid repository?")
    return result.stdout


def is_git_repository(path: str = ".") -> bool:
    """Checks if `path` is inside a Git working tree."""
    try:
        result = run_git(["rev-parse", "--is-inside-work-tree"], path)
    except RepositoryAccessError:
        return False
    return result.returncode == 0 and result.stdout.strip() == "true"


def get_hooks_dir(path: str = ".") -> str:
    """
    Returns the absolute hooks directory of the repository containing `path`.

    Raises:
        RepositoryAccessError: If the path is not inside a repository.
    """
    hooks_dir = git_output(["rev-parse", "--git-path", "hooks"], path).strip()
    return os.path.abspath(os.path.join(path, hooks_dir))
