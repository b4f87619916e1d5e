"""
Helper routines for validating the microphone and speaker outside the
push-to-talk loop.
"""

import asyncio
from typing import Optional

from holocron.assistant import CapabilityProbe
from holocron.audio.device import RECORDING_MODE
from holocron.audio.sounddevice_backend import SoundDeviceAudio
from holocron.config import CHANNELS, SAMPLE_RATE
from holocron.platforms import select_platform

DEFAULT_CAPTURE_SECONDS = 3.0


async def test_audio_capture(
    platform_name: Optional[str] = None, seconds: float = DEFAULT_CAPTURE_SECONDS
) -> bool:
    """Probe the microphone, record a short sample and play it back."""
    print("\n=== Audio Capture Test ===\n")

    platform = select_platform(platform_name)
    device = SoundDeviceAudio(platform)
    capability = await CapabilityProbe(device).probe()
    if not capability.available:
        print(f"Microphone unavailable: {capability.reason}")
        return False

    await device.configure_mode(RECORDING_MODE)
    capture = await device.acquire_capture()
    print(f"Recording for {seconds:.1f} seconds...")
    print("(Speak into your microphone or make some noise)\n")

    uri = None
    try:
        await asyncio.sleep(seconds)
        uri, status = await capture.stop()
    finally:
        await capture.release()

    print("\n=== Test Complete ===")
    print(f"Callbacks received: {capture.callback_count}")
    print(f"Frames captured: {status.frame_count:,} (~{status.duration_ms} ms)")
    print(f"Audio format: {SAMPLE_RATE}Hz, {CHANNELS} channel(s), 16-bit PCM WAV")
    if uri is None:
        print("No audio was captured.")
        return False

    print(f"Recording stored at: {uri}")
    playback = await device.acquire_playback(uri)
    try:
        await playback.start()
        await asyncio.sleep(status.duration_ms / 1000)
    finally:
        await playback.release()
        await platform.discard(uri)
    return True


if __name__ == "__main__":
    print("Run the check via `holocron test-audio`.")
