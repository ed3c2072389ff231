from config.models import BackendConfig
from core.contracts.backend import ReviewBackend
from core.registry import backend_registry

ECHO_LENGTH = 100


@backend_registry.register("mock")
class MockBackend(ReviewBackend):
    """
    A deterministic backend for tests and dry runs.

    Echoes the beginning of the prompt unless a fixed `response` is given.
    """

    def __init__(self, config: BackendConfig = None, response: str = None):
        self.config = config or BackendConfig(provider="mock")
        self._response = response
        self.prompts = []

    async def analyze(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self._response is not None:
            return self._response
        return f"Mock analysis for prompt: {prompt[:ECHO_LENGTH]}..."
