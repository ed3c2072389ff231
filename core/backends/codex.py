import asyncio
import shutil
import subprocess
from typing import List

from config.models import BackendConfig
from core.contracts.backend import ReviewBackend
from core.registry import backend_registry
from utils.errors import BackendError, ConfigError
from utils.logger import logger

MAX_OUTPUT_CHARS = 1024 * 1024


def strip_cli_banner(output: str) -> str:
    """
    Drops the session header `codex exec` prints before the answer.

    The answer starts after the first line mentioning "codex" that is not the
    version banner. Output without such a line is returned unchanged.
    """
    lines = output.split("\n")
    for index, line in enumerate(lines):
        if "codex" in line and "OpenAI Codex v" not in line:
            return "\n".join(lines[index + 1:]).strip()
    return output.strip()


@backend_registry.register("codex")
class CodexCliBackend(ReviewBackend):
    """
    Pipes the prompt to the `codex exec` CLI on stdin.
    """

    def __init__(self, config: BackendConfig):
        self.config = config
        self._command: List[str] = list(config.command)
        if not self._command:
            raise ConfigError("Codex backend requires a non-empty `command`.")
        if shutil.which(self._command[0]) is None:
            raise ConfigError(f"Codex CLI '{self._command[0]}' not found in PATH.")

    def _run(self, prompt: str) -> str:
        try:
            result = subprocess.run(
                self._command,
                input=prompt,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.config.timeout_sec,
            )
        except subprocess.TimeoutExpired as e:
            raise BackendError(f"Codex CLI timed out after {self.config.timeout_sec}s") from e
        except OSError as e:
            logger.debug(f"Codex CLI could not be started: {e}")
            raise BackendError("Codex CLI could not be started") from e

        if result.returncode != 0:
            logger.debug(f"Codex CLI exited with {result.returncode}: {result.stderr.strip()}")
            raise BackendError(f"Codex CLI exited with status {result.returncode}")
        return result.stdout[:MAX_OUTPUT_CHARS]

    async def analyze(self, prompt: str) -> str:
        output = await asyncio.to_thread(self._run, prompt)
        return strip_cli_banner(output)
