import logging
from typing import Any, Dict, Optional

import httpx

from engine.base import BaseEngine, UpstreamError


class DeepSeekEngine(BaseEngine):
    """Chat-completions client for the DeepSeek R1 reasoning API."""

    def __init__(
        self,
        config: Dict[str, Any],
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.api_key = config.get('api_key')
        self.api_url = config.get('api_url')
        self.model = config.get('model')
        self.timeout = config.get('timeout', 120.0)
        self.logger = logger or logging.getLogger("DeepSeekEngine")

        self.client = client or httpx.AsyncClient(timeout=self.timeout)

    def _build_payload(self, query: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "user", "content": query}
            ],
        }

    async def think(self, query: str) -> str:
        try:
            response = await self.client.post(
                self.api_url,
                json=self._build_payload(query),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"Error calling DeepSeek API: {e}")
            raise UpstreamError() from e

        return self._extract_content(data)

    def _extract_content(self, data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            self.logger.error(f"Unexpected DeepSeek API response shape: {e}")
            raise UpstreamError() from e

        if not isinstance(content, str):
            self.logger.error(
                f"Unexpected DeepSeek API content type: {type(content).__name__}"
            )
            raise UpstreamError()

        return content

    async def close(self) -> None:
        await self.client.aclose()
