"""OCR engine abstractions and concrete backends."""

from __future__ import annotations

import base64
import io
from abc import ABC, abstractmethod
from typing import Any

from easyread.config import Settings


class OcrEngine(ABC):
    """OCR interface used by the image ingestion adapter."""

    @abstractmethod
    def recognize(self, image: bytes, *, language: str = "eng") -> str:
        """Return the text visible in a raster image."""


class TesseractOcrEngine(OcrEngine):
    """Local OCR via the Tesseract binary through pytesseract."""

    def recognize(self, image: bytes, *, language: str = "eng") -> str:
        import pytesseract
        from PIL import Image

        with Image.open(io.BytesIO(image)) as picture:
            return str(pytesseract.image_to_string(picture, lang=language))


class VisionLLMOcrEngine(OcrEngine):
    """OCR through a multimodal chat model.

    `llm` is anything with a LangChain-style `invoke(messages)` method, usually
    `langchain_openai.ChatOpenAI`.
    """

    prompt = "Extract all visible text faithfully. Reply with the text only."

    def __init__(self, llm: Any, *, mime_type: str = "image/png") -> None:
        self.llm = llm
        self.mime_type = mime_type

    def recognize(self, image: bytes, *, language: str = "eng") -> str:
        from langchain_core.messages import HumanMessage

        encoded = base64.b64encode(image).decode("utf-8")
        message = HumanMessage(
            content=[
                {"type": "text", "text": f"{self.prompt} Language hint: {language}."},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{self.mime_type};base64,{encoded}"},
                },
            ]
        )
        response = self.llm.invoke([message])
        return str(getattr(response, "content", response))


def create_ocr_engine(settings: Settings) -> OcrEngine:
    if settings.ocr_engine == "vision":
        if not settings.openai_api_key:
            raise ValueError("OCR_ENGINE=vision requires OPENAI_API_KEY")

        from langchain_openai import ChatOpenAI

        llm = ChatOpenAI(
            model=settings.openai_model,
            temperature=0,
            api_key=settings.openai_api_key,
        )
        return VisionLLMOcrEngine(llm)
    return TesseractOcrEngine()
