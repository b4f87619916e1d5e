"""
PortAudio-backed implementation of the audio device capability.

Capture streams microphone blocks from ``sounddevice`` into memory and hands the
finished WAV to the platform store; playback decodes the stored reply with
``soundfile`` and plays it through the default output device.
"""

from __future__ import annotations

import asyncio
import io
from types import ModuleType
from typing import Any, Optional

from holocron.cli.logging_utils import CAPTURE_LOG_LABEL, LOGGER, PLAYBACK_LOG_LABEL
from holocron.config import AUDIO_INPUT_DEVICE, CHANNELS, DTYPE, SAMPLE_RATE
from holocron.core.exceptions import DecodeError
from holocron.platforms.base import AudioPlatform

from ._sounddevice import load_sounddevice, load_soundfile
from .device import AudioMode, RecordingStatus
from .utils import device_info_dict, pcm_to_wav

MS_PER_SECOND = 1000


class SoundDeviceCapture:
    """One microphone recording; frames are buffered until ``stop``."""

    def __init__(
        self,
        sd: ModuleType,
        store: AudioPlatform,
        *,
        device: Any,
        sample_rate: int,
        channels: int,
        dtype: str,
    ):
        self._sd = sd
        self._store = store
        self._device = device
        self._sample_rate = sample_rate
        self._channels = channels
        self._dtype = dtype
        self._chunks: list[bytes] = []
        self._status_flags: list[str] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stream: Any = None
        self._result: Optional[tuple[Optional[str], RecordingStatus]] = None
        self.callback_count = 0

    def callback(self, indata, frames, time_info, status):
        """Runs on the PortAudio thread; hands a copy of the block to the event loop."""

        self.callback_count += 1
        loop = self._loop
        if loop is None:
            return
        if status:
            loop.call_soon_threadsafe(self._status_flags.append, str(status))
        loop.call_soon_threadsafe(self._chunks.append, indata.copy().tobytes())

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._stream = self._sd.InputStream(
            samplerate=self._sample_rate,
            channels=self._channels,
            dtype=self._dtype,
            callback=self.callback,
            device=self._device,
        )
        try:
            self._stream.start()
        except Exception:
            self._close_stream()
            raise
        LOGGER.verbose(
            CAPTURE_LOG_LABEL,
            f"Input stream started ({self._sample_rate} Hz, {self._channels} ch, {self._dtype})",
        )

    async def stop(self) -> tuple[Optional[str], RecordingStatus]:
        if self._result is not None:
            return self._result

        done = True
        try:
            await asyncio.to_thread(self._close_stream)
        except Exception as exc:
            LOGGER.log(CAPTURE_LOG_LABEL, f"Input stream did not stop cleanly: {exc}", error=True)
            done = False
        # Let frames queued by the PortAudio thread land before reading the buffer.
        await asyncio.sleep(0)

        if self._status_flags:
            LOGGER.verbose(CAPTURE_LOG_LABEL, f"Stream flags: {', '.join(self._status_flags)}")

        pcm = b"".join(self._chunks)
        self._chunks.clear()
        frame_size = self._channels * _sample_width(self._dtype)
        frame_count = len(pcm) // frame_size if frame_size else 0
        duration_ms = (
            frame_count * MS_PER_SECOND // self._sample_rate if self._sample_rate > 0 else 0
        )
        status = RecordingStatus(
            is_done_recording=done, duration_ms=duration_ms, frame_count=frame_count
        )

        uri: Optional[str] = None
        if frame_count:
            wav_bytes = pcm_to_wav(
                pcm, sample_rate=self._sample_rate, channels=self._channels, dtype=self._dtype
            )
            uri = await self._store.store_recording(wav_bytes)
        self._result = (uri, status)
        return self._result

    async def release(self) -> None:
        if self._stream is None:
            return
        await asyncio.to_thread(self._close_stream)

    def _close_stream(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()


class SoundDevicePlayback:
    """A decoded reply ready to be handed to ``sounddevice.play``."""

    def __init__(self, sd: ModuleType, samples: Any, sample_rate: int, *, device: Any):
        self._sd = sd
        self._samples = samples
        self._sample_rate = sample_rate
        self._device = device
        self._playing = False

    @property
    def is_playing(self) -> bool:
        return self._playing

    async def start(self) -> None:
        await asyncio.to_thread(
            self._sd.play, self._samples, samplerate=self._sample_rate, device=self._device
        )
        self._playing = True

    async def release(self) -> None:
        if not self._playing:
            return
        self._playing = False
        await asyncio.to_thread(self._sd.stop)


class SoundDeviceAudio:
    """Audio device capability on top of PortAudio and libsndfile."""

    def __init__(
        self,
        store: AudioPlatform,
        *,
        sample_rate: int = SAMPLE_RATE,
        channels: int = CHANNELS,
        dtype: str = DTYPE,
        input_device: Optional[str] = AUDIO_INPUT_DEVICE,
    ):
        self._store = store
        self._sample_rate = sample_rate
        self._channels = channels
        self._dtype = dtype
        self._input_override = self._parse_device_override(input_device)
        self._mode: Optional[AudioMode] = None

    @property
    def mode(self) -> Optional[AudioMode]:
        return self._mode

    async def request_permission(self) -> bool:
        """Report whether a usable microphone is reachable.

        PortAudio has no permission prompt, so access is granted when an input
        device exists and accepts the configured stream settings.
        """

        sd = load_sounddevice()
        try:
            device = await asyncio.to_thread(self._select_input_device, sd)
            await asyncio.to_thread(
                sd.check_input_settings,
                device=device,
                channels=self._channels,
                dtype=self._dtype,
                samplerate=self._sample_rate,
            )
        except Exception as exc:
            LOGGER.verbose(CAPTURE_LOG_LABEL, f"Microphone access check failed: {exc}")
            return False
        return True

    async def configure_mode(self, mode: AudioMode) -> None:
        self._mode = mode
        LOGGER.verbose(CAPTURE_LOG_LABEL, f"Audio mode set: {mode}")

    async def acquire_capture(self) -> SoundDeviceCapture:
        if self._mode is None or not self._mode.allows_recording:
            raise RuntimeError("Audio mode does not allow recording; configure a recording mode")
        sd = load_sounddevice()
        device = self._select_input_device(sd)
        capture = SoundDeviceCapture(
            sd,
            self._store,
            device=device,
            sample_rate=self._sample_rate,
            channels=self._channels,
            dtype=self._dtype,
        )
        capture.start(asyncio.get_running_loop())
        LOGGER.verbose(CAPTURE_LOG_LABEL, f"Input device: {self._describe_device(sd, device)}")
        return capture

    async def acquire_playback(self, uri: str) -> SoundDevicePlayback:
        sd = load_sounddevice()
        data = await self._store.read(uri)
        samples, sample_rate = await asyncio.to_thread(self._decode, data)
        output_device = self._detect_output_device(sd)
        LOGGER.verbose(
            PLAYBACK_LOG_LABEL,
            f"Loaded {len(samples)} frames @ {sample_rate} Hz from {uri}",
        )
        return SoundDevicePlayback(sd, samples, sample_rate, device=output_device)

    @staticmethod
    def _decode(data: bytes) -> tuple[Any, int]:
        sf = load_soundfile()
        try:
            samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32")
        except Exception as exc:
            raise DecodeError(f"Unable to decode assistant audio: {exc}") from exc
        return samples, int(sample_rate)

    def _select_input_device(self, sd: ModuleType) -> Any:
        """
        Determine which audio input device to use.

        Prefers the explicit AUDIO_INPUT_DEVICE override, then the system default,
        then falls back to the first enumerated input device with sufficient channels.
        """

        if self._input_override is not None:
            sd.query_devices(self._input_override)
            return self._input_override

        default_device = self._coerce_index(sd.default.device, 0)
        if default_device is not None and default_device >= 0:
            try:
                sd.query_devices(default_device)
                return default_device
            except Exception:
                LOGGER.verbose(CAPTURE_LOG_LABEL, f"Default input {default_device} unavailable")

        devices = sd.query_devices()
        records = devices if isinstance(devices, (list, tuple)) else [devices]
        for idx, entry in enumerate(device_info_dict(item) for item in records):
            max_channels = entry.get("max_input_channels")
            if isinstance(max_channels, (int, float)) and int(max_channels) >= self._channels:
                return idx

        raise RuntimeError(
            "No audio input devices with the required channel count were found. "
            "Connect a microphone and retry."
        )

    @staticmethod
    def _detect_output_device(sd: ModuleType) -> Optional[int]:
        return SoundDeviceAudio._coerce_index(sd.default.device, 1)

    @staticmethod
    def _coerce_index(device: Any, position: int) -> Optional[int]:
        candidate = device[position] if isinstance(device, (list, tuple)) else device
        return candidate if isinstance(candidate, int) else None

    @staticmethod
    def _parse_device_override(value: Optional[str]) -> Any:
        if not value:
            return None

        candidate = value.strip()
        if not candidate:
            return None

        try:
            return int(candidate)
        except ValueError:
            return candidate

    @staticmethod
    def _describe_device(sd: ModuleType, device: Any) -> str:
        if device is None:
            return "system default"
        try:
            info = device_info_dict(sd.query_devices(device))
        except Exception:
            return str(device)
        name = info.get("name") or "Unknown device"
        return f"{name} (id {device})"


def _sample_width(dtype: str) -> int:
    return {"int8": 1, "int16": 2, "int32": 4, "float32": 4}.get(dtype, 2)


__all__ = ["SoundDeviceAudio", "SoundDeviceCapture", "SoundDevicePlayback"]
