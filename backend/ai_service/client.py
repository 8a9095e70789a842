"""
AI client for image descriptions.

Defines the describer interface used by the upload route, the Vertex AI
(Gemini) implementation, and a fixed-response stub for test mode.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

# --- GEMINI IMPORTS ---
from google import genai
from google.genai import errors, types

STUB_DESCRIPTION = "Test description generated by the stub describer."

PROMPT_TEMPLATE = (
    "Describe this image in detail in a single coherent, fluent paragraph "
    "written in {language}."
)


def build_prompt(language: str) -> str:
    """
    Build the fixed instruction sent with every image.

    Args:
        language (str): Natural language the description must be written in.

    Returns:
        str: The prompt text.
    """
    return PROMPT_TEMPLATE.format(language=language)


# --- RESULT TYPES ---
@dataclass(frozen=True)
class Described:
    text: str


@dataclass(frozen=True)
class NotDescribed:
    # Block or finish reason reported by the model, when there is one.
    reason: Optional[str] = None


DescriptionResult = Union[Described, NotDescribed]


class GenerationError(Exception):
    """The remote model call failed."""


# --- DESCRIBERS ---
class ImageDescriber(ABC):
    @abstractmethod
    def describe(self, prompt: str, image_bytes: bytes, mime_type: str) -> DescriptionResult:
        """Ask the model for a description of one image."""


class StubDescriber(ImageDescriber):
    """Always answers with the same text. Never touches the network."""

    def __init__(self, text: str = STUB_DESCRIPTION):
        self.text = text

    def describe(self, prompt: str, image_bytes: bytes, mime_type: str) -> DescriptionResult:
        return Described(self.text)


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))


class GeminiDescriber(ImageDescriber):
    """
    Describes images with a Gemini model served through Vertex AI.

    Credentials come from GOOGLE_APPLICATION_CREDENTIALS through the SDK's
    default auth lookup.
    """

    def __init__(
        self,
        project: str,
        location: str,
        model: str,
        timeout_seconds: Optional[int] = None,
        client: Optional[genai.Client] = None,
    ):
        self.model = model
        if client is None:
            http_options = None
            if timeout_seconds:
                # HttpOptions.timeout is in milliseconds
                http_options = types.HttpOptions(timeout=timeout_seconds * 1000)
            client = genai.Client(
                vertexai=True,
                project=project,
                location=location,
                http_options=http_options,
            )
            logging.info(
                f"Vertex AI client initialized for project '{project}' in '{location}'."
            )
        self.client = client
        logging.info(f"Generative model '{model}' selected.")

    def describe(self, prompt: str, image_bytes: bytes, mime_type: str) -> DescriptionResult:
        """
        Send the prompt and image as one user turn.

        The SDK carries the image as base64 inline data.

        Returns:
            Described: Text of every part of the first candidate, joined.
            NotDescribed: No candidate came back, or the first one is empty.

        Raises:
            GenerationError: The SDK call failed.
        """
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_text(text=prompt),
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                ],
            )
        ]

        try:
            response = self.client.models.generate_content(model=self.model, contents=contents)
        except errors.APIError as e:
            raise GenerationError(e.message or str(e)) from e

        candidates = response.candidates or []
        if not candidates:
            feedback = response.prompt_feedback
            reason = None
            if feedback is not None:
                reason = feedback.block_reason_message or _enum_name(feedback.block_reason)
            return NotDescribed(reason)

        first = candidates[0]
        if first.content is None or not first.content.parts:
            return NotDescribed(_enum_name(first.finish_reason))

        return Described("".join(part.text or "" for part in first.content.parts))
