from __future__ import annotations
import httpx

from app.clients.base import TextGenerationClient
from app.clients.http_helpers import post_json


class AzureOpenAIClient(TextGenerationClient):
    """Chat-completions client for an Azure OpenAI deployment.

    Returns the first choice's message content; transport and HTTP errors
    propagate as ``httpx.HTTPError`` so callers decide how to degrade.
    """

    def __init__(
        self,
        endpoint: str,
        deployment: str,
        api_key: str,
        api_version: str = "2024-02-15-preview",
        timeout: float = 30,
        max_tokens: int = 150,
        temperature: float = 0.1,
        transport: httpx.BaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.deployment = deployment
        self.api_key = api_key
        self.api_version = api_version
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.transport = transport

    @property
    def completions_url(self) -> str:
        host = self.endpoint.rstrip("/")
        if not host.startswith("http"):
            host = f"https://{host}"
        return f"{host}/openai/deployments/{self.deployment}/chat/completions?api-version={self.api_version}"

    def complete(self, prompt: str) -> str:
        data = post_json(
            self.completions_url,
            {
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
            },
            headers={"api-key": self.api_key},
            timeout=self.timeout,
            transport=self.transport,
        )
        choices = data.get("choices") or []
        if not choices:
            return ""
        return str((choices[0].get("message") or {}).get("content") or "")
