# 📄 File: app/modules/plant_analysis/infrastructure/providers/gemini.py
# 🧭 Purpose (Layman Explanation):
# Talks to Google Gemini, the AI assistant that judges photo quality, writes care plans and
# gives treatment advice. It always asks for answers as structured data, never free text.
#
# 🧪 Purpose (Technical Summary):
# GenerativeProvider adapter for the Gemini generateContent REST endpoint with JSON-mode output
# (responseMimeType + responseSchema). A fast model serves cheap checks, the main model serves
# care plans and advice; both share one throttled quota bucket.
#
# 🔗 Dependencies:
# - app.shared.infrastructure.external_apis (APIClient over aiohttp, ThrottledClient)
# - json for decoding the model's text part
#
# 🔄 Connected Modules / Calls From:
# - ImageQualityGate, CarePlanSynthesizer, HealthAssessor (through the GenerativeProvider port)
# - Presentation dependency container (construction)

import json
from typing import Any, Dict, Optional, Sequence

from app.shared.core.exceptions import MalformedProviderResponseError
from app.shared.infrastructure.external_apis.api_client import APIClient
from app.shared.infrastructure.external_apis.throttled_client import ThrottledClient
from app.shared.utils.logging import get_logger

from ...domain.models.identification import ImagePayload
from ...domain.repositories.providers import GenerativeProvider

logger = get_logger(__name__)


class GeminiProvider(GenerativeProvider):
    """Gemini adapter returning parsed JSON objects."""

    name = "gemini"

    def __init__(
        self,
        client: APIClient,
        throttle: ThrottledClient,
        model: str = "gemini-1.5-pro",
        fast_model: str = "gemini-1.5-flash",
    ):
        self.client = client
        self.throttle = throttle
        self.model = model
        self.fast_model = fast_model

    def build_request(
        self,
        prompt: str,
        response_schema: Optional[Dict[str, Any]] = None,
        images: Sequence[ImagePayload] = (),
    ) -> Dict[str, Any]:
        """Build the generateContent request body."""
        parts = [
            {"inlineData": {"mimeType": image.mime_type, "data": image.to_base64()}}
            for image in images
        ]
        parts.append({"text": prompt})

        generation_config: Dict[str, Any] = {"responseMimeType": "application/json"}
        if response_schema:
            generation_config["responseSchema"] = response_schema

        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }

    async def generate_json(
        self,
        caller_id: str,
        prompt: str,
        response_schema: Optional[Dict[str, Any]] = None,
        images: Sequence[ImagePayload] = (),
        fast: bool = False,
    ) -> Dict[str, Any]:
        model = self.fast_model if fast else self.model
        body = self.build_request(prompt, response_schema, images)

        data = await self.throttle.call(
            caller_id,
            lambda: self.client.post(f"models/{model}:generateContent", data=body),
        )
        return self.parse_response(data, model)

    def parse_response(self, data: Dict[str, Any], model: str) -> Dict[str, Any]:
        """
        Extract the JSON object from the first candidate.

        Args:
            data: generateContent response body
            model: Model name, for logs

        Returns:
            Decoded JSON object

        Raises:
            MalformedProviderResponseError: No text part, or the text is not a JSON object
        """
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            finish = None
            candidates = data.get("candidates")
            if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
                finish = candidates[0].get("finishReason")
            logger.warning("Gemini returned no text part", model=model, finish_reason=finish)
            raise MalformedProviderResponseError(
                "Gemini response has no text part",
                provider=self.name,
                raw_response=str(data)[:2000],
            )

        try:
            parsed = json.loads(text)
        except ValueError:
            raise MalformedProviderResponseError(
                "Gemini returned text that is not JSON",
                provider=self.name,
                raw_response=str(text)[:2000],
            )

        if not isinstance(parsed, dict):
            raise MalformedProviderResponseError(
                "Gemini returned JSON that is not an object",
                provider=self.name,
                raw_response=str(text)[:2000],
            )
        return parsed
