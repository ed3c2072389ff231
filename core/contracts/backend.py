from typing import Protocol


class ReviewBackend(Protocol):
    """A protocol for external review backends (LLM APIs, CLIs...)."""

    async def analyze(self, prompt: str) -> str:
        """
        Sends a prompt to the backend and returns its raw text answer.

        Args:
            prompt: The full review prompt.

        Returns:
            The backend's response text. No structure is guaranteed.

        Raises:
            BackendError: On transport failures and timeouts.
        """
        ...
