# codecollab/services/runner.py

from __future__ import annotations

from typing import Optional

import httpx

from codecollab.core.logging import get_logger
from codecollab.models.models import RunCodeResponse

logger = get_logger(__name__)


class RunnerError(Exception):
    pass


class RunnerNotConfigured(RunnerError):
    pass


class RunnerClient:
    """
    Thin async client for a Judge0-compatible code runner.

    Submissions are sent with ``wait=true`` so a single request returns the
    finished run. Sandboxing is entirely the runner's business.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _get_client(self) -> httpx.AsyncClient:
        """Create the shared AsyncClient on first use."""
        if self.client is None:
            headers = {"X-Auth-Token": self.api_key} if self.api_key else {}
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self.transport,
            )
        return self.client

    async def run(self, code: str, language_id: int, stdin: Optional[str] = None) -> RunCodeResponse:
        if not self.configured:
            raise RunnerNotConfigured("RUNNER_URL is not set")

        submission = {"source_code": code, "language_id": language_id}
        if stdin is not None:
            submission["stdin"] = stdin

        try:
            response = await self._get_client().post(
                "/submissions",
                params={"base64_encoded": "false", "wait": "true"},
                json=submission,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Runner request failed: {e}")
            raise RunnerError(str(e)) from e

        logger.info(f"▶ Ran language={language_id} status={(data.get('status') or {}).get('description')}")
        return RunCodeResponse(
            stdout=data.get("stdout") or "",
            stderr=data.get("stderr") or data.get("compile_output") or "",
        )

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
