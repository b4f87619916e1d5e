import os
from typing import Optional

import httpx
import pytest

_TEST_ENV_DEFAULTS = {
    "HOLOCRON_API_URL": "http://holocron.test",
    "HOLOCRON_PLATFORM": "native",
    "VERBOSE_LOG_CAPTURE_ENABLED": "0",
}

for key, value in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(key, value)

from holocron.audio.device import AudioMode, RecordingStatus  # noqa: E402
from holocron.network import TalkClient  # noqa: E402
from holocron.platforms import NativePlatform, WebPlatform  # noqa: E402

FAKE_RECORDING = b"RIFF\x00\x00\x00\x00WAVEfake-recording"


class FakeCaptureHandle:
    def __init__(self, device: "FakeAudioDevice"):
        self._device = device
        self.stop_calls = 0
        self.callback_count = 0
        self.released = False

    async def stop(self) -> tuple[Optional[str], RecordingStatus]:
        self.stop_calls += 1
        self._device.calls.append("capture.stop")
        if self._device.stop_error is not None:
            raise self._device.stop_error
        uri = None
        if self._device.recording:
            uri = await self._device.platform.store_recording(self._device.recording)
        status = RecordingStatus(
            is_done_recording=self._device.recording_done,
            duration_ms=self._device.duration_ms if uri else 0,
            frame_count=len(self._device.recording),
        )
        return uri, status

    async def release(self) -> None:
        self.released = True
        self._device.calls.append("capture.release")


class FakePlaybackHandle:
    def __init__(self, device: "FakeAudioDevice", uri: str, data: bytes):
        self._device = device
        self.uri = uri
        self.data = data
        self.started = False
        self.released = False

    async def start(self) -> None:
        self._device.calls.append("playback.start")
        if self._device.start_error is not None:
            raise self._device.start_error
        self.started = True

    async def release(self) -> None:
        self.released = True
        self._device.calls.append("playback.release")
        self._device.loaded.remove(self)


class FakeAudioDevice:
    """In-memory stand-in for the microphone/speaker driver."""

    def __init__(self, platform):
        self.platform = platform
        self.permission = True
        self.permission_error: Optional[Exception] = None
        self.acquire_error: Optional[Exception] = None
        self.stop_error: Optional[Exception] = None
        self.start_error: Optional[Exception] = None
        self.recording = FAKE_RECORDING
        self.recording_done = True
        self.duration_ms = 1200
        self.modes: list[AudioMode] = []
        self.calls: list[str] = []
        self.captures: list[FakeCaptureHandle] = []
        self.playbacks: list[FakePlaybackHandle] = []
        self.loaded: list[FakePlaybackHandle] = []
        self.max_loaded = 0

    async def request_permission(self) -> bool:
        self.calls.append("request_permission")
        if self.permission_error is not None:
            raise self.permission_error
        return self.permission

    async def configure_mode(self, mode: AudioMode) -> None:
        self.calls.append("configure_mode")
        self.modes.append(mode)

    async def acquire_capture(self) -> FakeCaptureHandle:
        self.calls.append("acquire_capture")
        if self.acquire_error is not None:
            raise self.acquire_error
        handle = FakeCaptureHandle(self)
        self.captures.append(handle)
        return handle

    async def acquire_playback(self, uri: str) -> FakePlaybackHandle:
        self.calls.append("acquire_playback")
        data = await self.platform.read(uri)
        handle = FakePlaybackHandle(self, uri, data)
        self.playbacks.append(handle)
        self.loaded.append(handle)
        self.max_loaded = max(self.max_loaded, len(self.loaded))
        return handle


@pytest.fixture(autouse=True)
def set_test_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep critical environment variables stable across tests."""

    for key, value in _TEST_ENV_DEFAULTS.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def native_platform(tmp_path) -> NativePlatform:
    return NativePlatform(tmp_path / "cache")


@pytest.fixture
def web_platform() -> WebPlatform:
    return WebPlatform()


@pytest.fixture
def native_device(native_platform) -> FakeAudioDevice:
    return FakeAudioDevice(native_platform)


@pytest.fixture
def web_device(web_platform) -> FakeAudioDevice:
    return FakeAudioDevice(web_platform)


class ReplyServer:
    """``httpx.MockTransport`` handler standing in for the assistant service."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.content = b"ID3\x04\x00fake-mp3-reply"
        self.headers = {"content-type": "audio/mpeg"}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.content, headers=self.headers)

    def client(self, platform, **overrides) -> TalkClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(self))
        return TalkClient(platform, client=http_client, **overrides)


@pytest.fixture
def reply_server() -> ReplyServer:
    return ReplyServer()


@pytest.fixture
def fake_audio_device():
    """Factory for :class:`FakeAudioDevice` bound to a given platform."""

    return FakeAudioDevice
