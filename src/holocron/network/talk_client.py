"""HTTP client for the assistant's ``/talk`` endpoint."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, TypedDict

import httpx
from typing_extensions import Unpack

from holocron.cli.logging_utils import LOGGER, TRANSPORT_LOG_LABEL
from holocron.config import (
    ASSISTANT_CONTEXT,
    HOLOCRON_API_URL,
    REPLY_ACCEPT,
    REQUEST_TIMEOUT_SECONDS,
    TALK_PATH,
)
from holocron.core.exceptions import ConfigurationError, TransportError
from holocron.platforms.base import AudioPlatform

MAX_ERROR_BODY_CHARS = 2000


@dataclass(frozen=True, slots=True)
class ReplyPayload:
    """Raw assistant audio, only kept until playback has been prepared."""

    data: bytes
    content_type: str = REPLY_ACCEPT


@dataclass(slots=True)
class TalkClientConfig:
    base_url: str = HOLOCRON_API_URL
    talk_path: str = TALK_PATH
    context: str = ASSISTANT_CONTEXT
    accept: str = REPLY_ACCEPT
    timeout_seconds: float = REQUEST_TIMEOUT_SECONDS


TALK_CLIENT_CONFIG_FIELDS = frozenset(TalkClientConfig.__dataclass_fields__.keys())


class TalkClientOverrides(TypedDict, total=False):
    base_url: str
    talk_path: str
    context: str
    accept: str
    timeout_seconds: float


class TalkClient:
    """Upload one recording and return the synthesized reply."""

    def __init__(
        self,
        platform: AudioPlatform,
        *,
        config: Optional[TalkClientConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        **overrides: Unpack[TalkClientOverrides],
    ):
        config_obj = config or TalkClientConfig()
        if overrides:
            invalid = set(overrides) - TALK_CLIENT_CONFIG_FIELDS
            if invalid:
                raise TypeError(f"Invalid talk client override(s): {', '.join(sorted(invalid))}")
            config_obj = replace(config_obj, **overrides)
        self._config = config_obj
        self._platform = platform
        self._client = client
        self._owns_client = client is None

    @property
    def endpoint(self) -> Optional[str]:
        base_url = (self._config.base_url or "").strip().rstrip("/")
        if not base_url:
            return None
        return f"{base_url}/{self._config.talk_path.lstrip('/')}"

    async def send(self, source_uri: str) -> ReplyPayload:
        """POST the recording and context prompt, returning the reply audio bytes."""

        endpoint = self.endpoint
        if endpoint is None:
            raise ConfigurationError(
                "HOLOCRON_API_URL is not defined; set it in the environment or .env"
            )

        part = await self._platform.upload_part(source_uri)
        LOGGER.log(TRANSPORT_LOG_LABEL, f"Sending to API: {endpoint}")
        client = self._ensure_client()
        try:
            with part.open() as file_field:
                response = await client.post(
                    endpoint,
                    files={"file": file_field},
                    data={"context": self._config.context},
                    headers={"Accept": self._config.accept},
                )
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {endpoint} failed: {exc}") from exc

        if response.is_error:
            raise TransportError(
                f"Assistant service returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=_truncate(response.text),
            )

        content = response.content
        if not content:
            raise TransportError(
                "Assistant service returned an empty reply",
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", self._config.accept)
        if not content_type.strip().lower().startswith("audio/"):
            raise TransportError(
                f"Assistant service returned {content_type} instead of audio",
                status_code=response.status_code,
                body=_truncate(response.text),
            )
        LOGGER.verbose(
            TRANSPORT_LOG_LABEL,
            f"Reply received: {len(content)} bytes ({content_type}), HTTP {response.status_code}",
        )
        return ReplyPayload(data=content, content_type=content_type)

    async def aclose(self) -> None:
        client = self._client
        if client is None or not self._owns_client:
            return
        self._client = None
        await client.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
            self._owns_client = True
        return self._client


def _truncate(text: str) -> str:
    if len(text) <= MAX_ERROR_BODY_CHARS:
        return text
    return text[:MAX_ERROR_BODY_CHARS] + "…"


__all__ = ["ReplyPayload", "TalkClient", "TalkClientConfig"]
