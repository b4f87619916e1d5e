from __future__ import annotations

import base64
from pathlib import Path

import pytest

from holocron.audio.device import PLAYBACK_MODE, RECORDING_MODE, RecordingStatus
from holocron.core.exceptions import (
    DecodeError,
    IncompleteRecording,
    NoRecordingProduced,
    PlaybackPreparationError,
)
from holocron.network import ReplyPayload
from holocron.platforms import NativePlatform, WebPlatform, select_platform
from holocron.platforms.native import CacheDirectory, path_from_uri
from holocron.platforms.web import BlobRegistry


def test_select_platform_by_name(tmp_path: Path) -> None:
    assert isinstance(select_platform("web"), WebPlatform)
    native = select_platform(" Native ", cache_dir=tmp_path)
    assert isinstance(native, NativePlatform)
    assert native.reply_path == tmp_path / "response.mp3"


def test_select_platform_rejects_unknown_name() -> None:
    with pytest.raises(ValueError, match="android"):
        select_platform("android")


def test_blob_registry_create_and_revoke() -> None:
    registry = BlobRegistry(origin="test")
    uri = registry.create(b"abc", "audio/mpeg")

    assert uri.startswith("blob:test/")
    assert uri in registry
    assert registry.get(uri).data == b"abc"
    assert registry.revoke(uri) is True
    assert registry.revoke(uri) is False
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_web_platform_round_trips_blobs(web_platform) -> None:
    uri = await web_platform.store_recording(b"pcm")
    part = await web_platform.upload_part(uri)

    assert part.filename == "recording.wav"
    assert part.mime_type == "audio/wav"
    with part.open() as field:
        assert field == ("recording.wav", b"pcm", "audio/wav")

    reply_uri = await web_platform.stage_reply(ReplyPayload(b"mp3"))
    assert await web_platform.read(reply_uri) == b"mp3"
    await web_platform.discard(reply_uri)
    with pytest.raises(DecodeError):
        await web_platform.read(reply_uri)


@pytest.mark.asyncio
async def test_web_platform_rejects_empty_reply(web_platform) -> None:
    with pytest.raises(DecodeError):
        await web_platform.stage_reply(ReplyPayload(b""))
    assert len(web_platform.blobs) == 0


def test_web_platform_modes_and_completion(web_platform) -> None:
    assert web_platform.capture_mode() == RECORDING_MODE
    assert web_platform.playback_mode() is None
    web_platform.check_recording(RecordingStatus(is_done_recording=False))


@pytest.mark.asyncio
async def test_web_upload_part_requires_live_blob(web_platform) -> None:
    with pytest.raises(NoRecordingProduced):
        await web_platform.upload_part("blob:holocron/missing")


def test_path_from_uri_accepts_file_uris(tmp_path: Path) -> None:
    target = tmp_path / "a b.wav"
    assert path_from_uri(target.as_uri()) == target
    assert path_from_uri(str(target)) == target
    with pytest.raises(ValueError):
        path_from_uri("blob:holocron/123")


def test_cache_directory_writes_atomically(tmp_path: Path) -> None:
    cache = CacheDirectory(tmp_path / "nested" / "cache")

    path = cache.write_bytes("response.mp3", b"first")
    cache.write_bytes("response.mp3", b"second")

    assert path.read_bytes() == b"second"
    assert sorted(p.name for p in cache.root.iterdir()) == ["response.mp3"]
    assert cache.contains(path) is True
    assert cache.contains(tmp_path / "elsewhere.mp3") is False


def test_cache_directory_write_base64_validates_input(tmp_path: Path) -> None:
    cache = CacheDirectory(tmp_path)

    path = cache.write_base64("reply.mp3", base64.b64encode(b"\x00\xffaudio").decode("ascii"))
    assert path.read_bytes() == b"\x00\xffaudio"

    with pytest.raises(ValueError):
        cache.write_base64("reply.mp3", "not base64!!")


@pytest.mark.asyncio
async def test_native_stage_reply_overwrites_single_file(native_platform) -> None:
    first = await native_platform.stage_reply(ReplyPayload(b"one"))
    second = await native_platform.stage_reply(ReplyPayload(b"two"))

    assert first == second
    assert path_from_uri(second) == native_platform.reply_path.resolve()
    assert await native_platform.read(second) == b"two"
    assert sorted(p.name for p in native_platform.cache.root.iterdir()) == ["response.mp3"]


@pytest.mark.asyncio
async def test_native_stage_reply_rejects_empty_payload(native_platform) -> None:
    with pytest.raises(DecodeError):
        await native_platform.stage_reply(ReplyPayload(b""))


@pytest.mark.asyncio
async def test_native_stage_reply_reports_write_failures(
    native_platform, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fail(*_args, **_kwargs):
        raise PermissionError("read-only cache")

    monkeypatch.setattr(native_platform.cache, "write_bytes", fail)

    with pytest.raises(PlaybackPreparationError, match="read-only cache"):
        await native_platform.stage_reply(ReplyPayload(b"mp3"))


@pytest.mark.asyncio
async def test_native_recording_upload_and_discard(native_platform) -> None:
    uri = await native_platform.store_recording(b"pcm")
    part = await native_platform.upload_part(uri)

    assert part.path == path_from_uri(uri)
    with part.open() as (filename, handle, mime_type):
        assert filename == "recording.wav"
        assert mime_type == "audio/wav"
        assert handle.read() == b"pcm"

    await native_platform.discard(uri)
    assert not part.path.exists()
    with pytest.raises(NoRecordingProduced):
        await native_platform.upload_part(uri)


@pytest.mark.asyncio
async def test_native_discard_keeps_reply_and_outside_files(native_platform, tmp_path) -> None:
    reply_uri = await native_platform.stage_reply(ReplyPayload(b"mp3"))
    outside = tmp_path / "keep.wav"
    outside.write_bytes(b"x")

    await native_platform.discard(reply_uri)
    await native_platform.discard(outside.as_uri())

    assert native_platform.reply_path.exists()
    assert outside.exists()


@pytest.mark.asyncio
async def test_native_read_missing_file(native_platform) -> None:
    with pytest.raises(PlaybackPreparationError):
        await native_platform.read(native_platform.reply_path.resolve().as_uri())


def test_native_modes_and_completion(native_platform) -> None:
    assert native_platform.capture_mode() == RECORDING_MODE
    assert native_platform.playback_mode() == PLAYBACK_MODE
    native_platform.check_recording(RecordingStatus(is_done_recording=True))
    with pytest.raises(IncompleteRecording, match="Recording not completed properly"):
        native_platform.check_recording(RecordingStatus(is_done_recording=False))
