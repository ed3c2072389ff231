import asyncio
import os
import stat
from dataclasses import dataclass

from utils.errors import FileAccessError
from utils.logger import logger


@dataclass(frozen=True)
class FileStats:
    size: int
    is_file: bool
    is_directory: bool


class FileSystem:
    """
    Async file access used by the review pipeline.

    Blocking calls run in a worker thread. Errors are raised as FileAccessError
    with generic messages; the OS error text is only logged at DEBUG.
    """

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.exists, path)

    async def stat(self, path: str) -> FileStats:
        try:
            st = await asyncio.to_thread(os.stat, path)
        except OSError as e:
            logger.debug(f"stat failed for {path}: {e}")
            raise FileAccessError("File cannot be accessed")
        return FileStats(
            size=st.st_size,
            is_file=stat.S_ISREG(st.st_mode),
            is_directory=stat.S_ISDIR(st.st_mode),
        )

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self._read_text, path)

    @staticmethod
    def _read_text(path: str) -> str:
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except UnicodeDecodeError:
            raise FileAccessError("File is not valid UTF-8 text")
        except OSError as e:
            logger.debug(f"read failed for {path}: {e}")
            raise FileAccessError("File could not be read")
