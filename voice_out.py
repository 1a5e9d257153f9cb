from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from errors import SynthesisError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgeTTSConfig:
    voice: str = "sl-SI-PetraNeural"
    rate: str = "+0%"
    volume: str = "+0%"


class VoiceOut:
    """Text -> mp3 bytes through edge-tts. Playback is the caller's concern."""

    def __init__(self, rate: int = 180, volume: float = 1.0, voice: Optional[str] = None) -> None:
        self.rate = max(80, int(rate))
        self.volume = max(0.0, float(volume))
        self.voice = voice or EdgeTTSConfig.voice

        self._cfg = EdgeTTSConfig(
            voice=self.voice,
            rate=self._format_edge_rate(self.rate),
            volume=self._format_edge_volume(self.volume),
        )

    @staticmethod
    def _format_edge_rate(rate_wpm: int) -> str:
        perc = (rate_wpm / 180.0 - 1.0) * 100.0
        return f"{perc:+.0f}%"

    @staticmethod
    def _format_edge_volume(volume: float) -> str:
        vol_perc = (volume - 1.0) * 100.0
        return f"{vol_perc:+.0f}%"

    async def _edge_speech(self, text: str) -> bytes:
        import edge_tts  # type: ignore

        communicate = edge_tts.Communicate(
            text=text,
            voice=self._cfg.voice,
            rate=self._cfg.rate,
            volume=self._cfg.volume,
        )
        audio = bytearray()
        async for chunk in communicate.stream():
            if chunk.get("type") == "audio":
                audio.extend(chunk["data"])
        return bytes(audio)

    def synthesize(self, text: str) -> bytes:
        cleaned = (text or "").strip()
        if not cleaned:
            return b""
        try:
            audio = asyncio.run(self._edge_speech(cleaned))
        except Exception as e:
            raise SynthesisError(f"speech synthesis failed: {type(e).__name__}", original_error=e) from e
        if not audio:
            raise SynthesisError("speech synthesis returned no audio")
        logger.debug("synthesized %d chars -> %d bytes", len(cleaned), len(audio))
        return audio
