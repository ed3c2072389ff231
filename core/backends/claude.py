import os
import httpx
import json

from core.contracts.backend import ReviewBackend
from config.models import BackendConfig
from core.registry import backend_registry
from utils.errors import BackendError, ConfigError


@backend_registry.register("claude")
class ClaudeBackend(ReviewBackend):
    """
    Review backend for the Anthropic messages API.
    """

    def __init__(self, config: BackendConfig):
        self.config = config
        self._api_key = config.api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ConfigError("Anthropic API key not found. Please set it in the config or as an environment variable ANTHROPIC_API_KEY.")

        self._client = httpx.AsyncClient(
            base_url=config.base_url or "https://api.anthropic.com/v1",
            headers={
                "x-api-key": self._api_key,
                "anthropic-version": "2023-06-01",
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout_sec,
        )

    async def _request(self, payload: dict) -> httpx.Response:
        try:
            response = await self._client.post("/messages", json=payload)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise BackendError("Request to Anthropic timed out") from e
        except httpx.HTTPStatusError as e:
            try:
                error_details = e.response.json()
                error_message = error_details.get("error", {}).get("message", e.response.text)
            except json.JSONDecodeError:
                error_message = e.response.text
            raise BackendError(f"Anthropic API error ({e.response.status_code}): {error_message}") from e
        except httpx.RequestError as e:
            raise BackendError("An unexpected network error occurred while contacting Anthropic") from e

    def _build_payload(self, prompt: str) -> dict:
        payload = {
            "model": self.config.name,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": 4096,  # required by the API
        }
        payload.update(self.config.parameters)
        return payload

    async def analyze(self, prompt: str) -> str:
        response = await self._request(self._build_payload(prompt))
        data = response.json()
        # Concatenate every text block; tool or thinking blocks are ignored
        blocks = data.get("content") or []
        return "".join(block.get("text", "") for block in blocks if block.get("type", "text") == "text")
