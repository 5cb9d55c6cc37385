# backend/plant_analyzer.py
# Gemini wrapper: one prompt + one inline image in, plain text out.

from __future__ import annotations
import logging
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = (
    "Analyze this plant image and provide detailed analysis of its species, health, "
    "and care recommendations, its characteristics, care instructions, and any "
    "interesting facts. Please provide response in plain text without using any "
    "markdown formatting"
)


class AnalysisError(Exception):
    pass


class UpstreamTimeout(AnalysisError):
    pass


class AnalyzerUnavailable(AnalysisError):
    pass


class PlantAnalyzer:
    """Sends a plant image to a generative model and returns its text answer.

    ``model`` is anything with a ``generate_content(contents, request_options=...)``
    method; in production that is a ``genai.GenerativeModel``.
    """

    def __init__(self, model, timeout: Optional[float] = 60.0, model_name: Optional[str] = None):
        self.model = model
        self.timeout = timeout
        self.model_name = model_name or getattr(model, "model_name", "unknown")

    @classmethod
    def from_settings(cls, settings) -> "PlantAnalyzer":
        if not settings.GEMINI_API_KEY:
            raise AnalyzerUnavailable("GEMINI_API_KEY is not configured")
        genai.configure(api_key=settings.GEMINI_API_KEY)
        model = genai.GenerativeModel(settings.GEMINI_MODEL)
        logger.info("Gemini model ready: %s", settings.GEMINI_MODEL)
        return cls(model, timeout=settings.GEMINI_TIMEOUT, model_name=settings.GEMINI_MODEL)

    def analyze(self, image_bytes: bytes, mime_type: str) -> str:
        contents = [
            ANALYSIS_PROMPT,
            {"mime_type": mime_type, "data": image_bytes},
        ]
        request_options = {"timeout": self.timeout} if self.timeout else {}
        try:
            response = self.model.generate_content(contents, request_options=request_options)
        except (google_exceptions.DeadlineExceeded, TimeoutError) as e:
            raise UpstreamTimeout(
                f"Model {self.model_name} did not answer within {self.timeout}s"
            ) from e

        text = _response_text(response)
        if not text.strip():
            raise AnalysisError("The model returned an empty analysis")
        logger.info("Analysis done (%s, %d bytes -> %d chars)", mime_type, len(image_bytes), len(text))
        return text


def _response_text(response) -> str:
    # .text raises ValueError when the candidate was blocked or has no parts
    try:
        text = response.text
    except ValueError as e:
        raise AnalysisError(f"The model returned no text: {e}") from e
    return text or ""
