from __future__ import annotations
import io
import logging
from dataclasses import dataclass
from typing import Optional

from errors import TranscriptionError

logger = logging.getLogger(__name__)


@dataclass
class STTResult:
    text: str
    language: Optional[str] = None


class WhisperSTT:
    def __init__(self, model_size: str = "small", device: str = "cpu", compute_type: str = "int8",
                 language: Optional[str] = "sl", model=None):
        if model is None:
            from faster_whisper import WhisperModel
            model = WhisperModel(model_size, device=device, compute_type=compute_type)
        self.model = model
        self.language = language

    def transcribe(self, audio: bytes) -> STTResult:
        if not audio:
            raise TranscriptionError("empty audio payload")
        try:
            segments, info = self.model.transcribe(io.BytesIO(audio), language=self.language, vad_filter=True)
            text = " ".join(seg.text.strip() for seg in segments).strip()
        except Exception as e:
            raise TranscriptionError(f"transcription failed: {type(e).__name__}", original_error=e) from e
        logger.debug("transcribed %d bytes -> %r", len(audio), text)
        return STTResult(text=text, language=getattr(info, "language", None))
