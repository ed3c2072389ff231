import os
import httpx
import json

from core.contracts.backend import ReviewBackend
from config.models import BackendConfig
from core.registry import backend_registry
from utils.errors import BackendError, ConfigError

DEFAULT_BASE_URL = "https://api.openai.com/v1"


@backend_registry.register("openai")
class OpenAIBackend(ReviewBackend):
    """
    Review backend for OpenAI's chat completions API.

    Any OpenAI-compatible server (Ollama, vLLM...) works through `base_url`.
    """

    def __init__(self, config: BackendConfig):
        self.config = config
        self._base_url = config.base_url or os.getenv("OPENAI_BASE_URL") or DEFAULT_BASE_URL
        self._api_key = config.api_key or os.getenv("OPENAI_API_KEY")
        if not self._api_key and self._base_url == DEFAULT_BASE_URL:
            raise ConfigError("OpenAI API key not found. Please set it in the config or as an environment variable OPENAI_API_KEY.")

        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self.config.timeout_sec,
        )

    async def _request(self, payload: dict) -> httpx.Response:
        try:
            response = await self._client.post("/chat/completions", json=payload)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise BackendError("Request to OpenAI timed out") from e
        except httpx.HTTPStatusError as e:
            try:
                error_details = e.response.json()
                error_message = error_details.get("error", {}).get("message", e.response.text)
            except json.JSONDecodeError:
                error_message = e.response.text
            raise BackendError(f"OpenAI API error ({e.response.status_code}): {error_message}") from e
        except httpx.RequestError as e:
            raise BackendError("An unexpected network error occurred while contacting OpenAI") from e

    def _build_payload(self, prompt: str) -> dict:
        return {
            "model": self.config.name,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
            **self.config.parameters,
        }

    async def analyze(self, prompt: str) -> str:
        response = await self._request(self._build_payload(prompt))
        data = response.json()
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise BackendError("Unexpected response shape from OpenAI") from e
