"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Playback of synthesized speech (base64 raw PCM) on the local output device.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

logger = logging.getLogger("frenchb1.audio")

DEFAULT_SAMPLE_RATE = 24000
PCM_SCALE = 32768.0


class AudioState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SUSPENDED = "suspended"
    RUNNING = "running"


@dataclass(frozen=True, slots=True)
class AudioBuffer:
    """Normalized float32 samples shaped `(frames, channels)`."""

    samples: np.ndarray
    sample_rate: int

    @property
    def frames(self) -> int:
        return int(self.samples.shape[0])

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration_s(self) -> float:
        return self.frames / float(self.sample_rate)


OutputFactory = Callable[[AudioBuffer], Any]
DeviceCheck = Callable[[int, int], None]


def sounddevice_check(sample_rate: int, channels: int) -> None:
    """Raise when the default output device cannot play `sample_rate` x `channels`."""
    import sounddevice as sd

    sd.check_output_settings(samplerate=sample_rate, channels=channels, dtype="float32")


def sounddevice_output(buffer: AudioBuffer) -> Any:
    """Open and start a one-shot sounddevice stream for `buffer`."""
    # Imported lazily: loading sounddevice requires the PortAudio library.
    import sounddevice as sd

    position = 0

    def callback(outdata: np.ndarray, frames: int, _time: Any, status: Any) -> None:
        nonlocal position
        if status:
            logger.debug("Output stream status: %s", status)
        chunk = buffer.samples[position : position + frames]
        outdata[: len(chunk)] = chunk
        position += len(chunk)
        if len(chunk) < frames:
            outdata[len(chunk) :] = 0
            raise sd.CallbackStop()

    stream = sd.OutputStream(
        samplerate=buffer.sample_rate,
        channels=buffer.channels,
        dtype="float32",
        callback=callback,
    )
    stream.start()
    return stream


class AudioPlaybackEngine:
    """
    Lazily opened output context with fire-and-forget playback.

    The context moves `UNINITIALIZED -> SUSPENDED` on first use, once the
    output device accepts the sample rate and channel count, and
    `SUSPENDED -> RUNNING` on `resume()`, which is idempotent. Every `play`
    opens its own stream, so overlapping calls overlap audibly. Finished
    streams are closed when pruned. Decode and device failures are logged
    and reported as `False`; nothing raises.

    `device_check` defaults to querying sounddevice only when the default
    sounddevice output is used.
    """

    def __init__(
        self,
        *,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = 1,
        output_factory: OutputFactory | None = None,
        device_check: DeviceCheck | None = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._output_factory = output_factory or sounddevice_output
        if device_check is None and output_factory is None:
            device_check = sounddevice_check
        self._device_check = device_check
        self._state = AudioState.UNINITIALIZED
        self._streams: list[Any] = []

    @property
    def state(self) -> AudioState:
        return self._state

    @property
    def active_streams(self) -> int:
        self._prune()
        return len(self._streams)

    def ensure_context(self) -> None:
        """
        Open the output context on first use.

        Raises:
            Exception: Whatever the device check raises; the state stays
                `UNINITIALIZED` so a later call probes again.
        """
        if self._state is not AudioState.UNINITIALIZED:
            return
        if self._device_check is not None:
            self._device_check(self.sample_rate, self.channels)
        self._state = AudioState.SUSPENDED
        logger.debug("Audio context created at %d Hz", self.sample_rate)

    async def resume(self) -> None:
        self.ensure_context()
        if self._state is AudioState.SUSPENDED:
            self._state = AudioState.RUNNING

    def decode(self, audio_b64: str) -> AudioBuffer:
        """
        Decode base64 little-endian int16 PCM into normalized samples.

        Raises:
            ValueError: On invalid base64 or a truncated sample.
        """
        try:
            raw = base64.b64decode(audio_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Invalid base64 audio: {exc}") from exc
        if len(raw) % 2:
            raise ValueError("PCM payload has an odd number of bytes")
        pcm = np.frombuffer(raw, dtype="<i2")
        frames = len(pcm) // self.channels
        samples = pcm[: frames * self.channels].astype(np.float32) / PCM_SCALE
        return AudioBuffer(samples=samples.reshape(frames, self.channels), sample_rate=self.sample_rate)

    def play(self, buffer: AudioBuffer) -> bool:
        if buffer.frames == 0:
            return False
        try:
            self.ensure_context()
            stream = self._output_factory(buffer)
        except Exception:
            logger.exception("Failed to play audio")
            return False
        self._prune()
        self._streams.append(stream)
        return True

    async def play_base64(self, audio_b64: str | None) -> bool:
        if not audio_b64:
            return False
        try:
            await self.resume()
        except Exception:
            logger.exception("Audio output device unavailable")
            return False
        try:
            buffer = self.decode(audio_b64)
        except ValueError:
            logger.exception("Failed to decode audio")
            return False
        return self.play(buffer)

    def close(self) -> None:
        streams, self._streams = self._streams, []
        for stream in streams:
            self._close_stream(stream)
        self._state = AudioState.UNINITIALIZED

    def _prune(self) -> None:
        live: list[Any] = []
        for stream in self._streams:
            if getattr(stream, "active", True):
                live.append(stream)
            else:
                # A stopped stream keeps its device handle until closed.
                self._close_stream(stream)
        self._streams = live

    @staticmethod
    def _close_stream(stream: Any) -> None:
        close = getattr(stream, "close", None)
        if close is None:
            return
        try:
            close()
        except Exception:
            logger.exception("Failed to close output stream")
