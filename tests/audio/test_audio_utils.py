import io
import wave
from collections import UserDict

import numpy as np

from holocron.audio.utils import device_info_dict, pcm_to_wav


def test_device_info_dict_from_plain_dict():
    data = {"name": "loopback", "index": 2}
    result = device_info_dict(data)
    assert result == data
    assert result is not data


def test_device_info_dict_from_mapping_and_object():
    assert device_info_dict(UserDict({"name": "usb mic"})) == {"name": "usb mic"}

    class Info:
        def __init__(self):
            self.name = "embedded"

    assert device_info_dict(Info()) == {"name": "embedded"}
    assert device_info_dict(42) == {}


def _read_wav(data: bytes):
    with wave.open(io.BytesIO(data), "rb") as wav_file:
        frames = np.frombuffer(wav_file.readframes(wav_file.getnframes()), dtype=np.int16)
        return wav_file.getframerate(), wav_file.getnchannels(), wav_file.getsampwidth(), frames


def test_pcm_to_wav_keeps_int16_samples():
    samples = np.array([0, 1000, -1000, 32767], dtype=np.int16)

    rate, channels, width, frames = _read_wav(
        pcm_to_wav(samples.tobytes(), sample_rate=44100, channels=1)
    )

    assert (rate, channels, width) == (44100, 1, 2)
    assert frames.tolist() == samples.tolist()


def test_pcm_to_wav_scales_float_input():
    samples = np.array([0.0, 0.5, -1.0, 2.0], dtype=np.float32)

    _, _, _, frames = _read_wav(
        pcm_to_wav(samples.tobytes(), sample_rate=16000, channels=2, dtype="float32")
    )

    assert frames.tolist() == [0, 16383, -32767, 32767]


def test_pcm_to_wav_rescales_int32_input():
    samples = np.array([2**30, -(2**30), 2**31 - 1], dtype=np.int32)

    _, _, _, frames = _read_wav(
        pcm_to_wav(samples.tobytes(), sample_rate=16000, channels=1, dtype="int32")
    )

    assert frames.tolist() == [16384, -16384, 32767]


def test_pcm_to_wav_rescales_8_bit_input():
    signed = np.array([64, -128, 127], dtype=np.int8)
    unsigned = np.array([192, 0, 128], dtype=np.uint8)

    _, _, _, from_signed = _read_wav(
        pcm_to_wav(signed.tobytes(), sample_rate=8000, channels=1, dtype="int8")
    )
    _, _, _, from_unsigned = _read_wav(
        pcm_to_wav(unsigned.tobytes(), sample_rate=8000, channels=1, dtype="uint8")
    )

    assert from_signed.tolist() == [16384, -32768, 32512]
    assert from_unsigned.tolist() == [16384, -32768, 0]
