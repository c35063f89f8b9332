"""AI collaborator for reading notes, inspecting sites and drafting quotations.

Two variants share the :class:`QuotationAssistant` interface. The Claude one
calls the Anthropic Messages API; the local one returns deterministic
stand-ins and is used whenever no API key is configured. Assistant calls never
raise: each Claude call falls back to a fixed message or the local result.
"""

from __future__ import annotations

import base64
import json
import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import anthropic
from anthropic import Anthropic

from tiling_suite.config import AiConfig
from tiling_suite.domain.models import Settings

logger = logging.getLogger(__name__)

OCR_PROMPT = (
    "Extract all handwritten or printed text from this tiling job note. "
    "Return only the extracted text."
)
SITE_PROMPT = (
    "Act as a senior tiler. Analyze this site photo. List any potential issues "
    "(uneven floors, cracks, damp) and suggested prep materials."
)

MOCK_OCR_TEXT = "Mock OCR Text:\nSitting Room 60m2\nKitchen 15m2\nCement 10 bags"
OCR_FAILED = "Failed to read image. Please type notes manually."
SITE_VISION_DISABLED = "AI Site Vision disabled in guest mode."
SITE_ANALYSIS_FAILED = "Analysis failed."
NO_SITE_ISSUES = "No issues detected."
SUMMARY_FAILED = "Failed to generate summary."
SUMMARY_UNAVAILABLE = "Summary unavailable."

QUOTATION_TOOL = "record_quotation"
MAX_TOKENS = 4096

_SQM_PATTERN = re.compile(r"(\d+)\s*m2", re.IGNORECASE)
_DEFAULT_MOCK_SQM = 50.0

_MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

_AI_ERRORS = (anthropic.APIError, ValueError, KeyError, IndexError, AttributeError, TypeError)


def _string() -> dict[str, str]:
    return {"type": "string"}


def _number() -> dict[str, str]:
    return {"type": "number"}


def _object(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required}


QUOTATION_SCHEMA: dict[str, Any] = _object(
    {
        "clientDetails": _object(
            {
                "clientName": _string(),
                "clientAddress": _string(),
                "clientPhone": _string(),
                "projectName": _string(),
            },
            ["clientName", "clientAddress", "clientPhone", "projectName"],
        ),
        "tiles": {
            "type": "array",
            "items": _object(
                {
                    "category": _string(),
                    "group": _string(),
                    "cartons": _number(),
                    "sqm": _number(),
                    "size": _string(),
                    "tileType": _string(),
                    "unitPrice": _number(),
                },
                ["category", "group", "cartons", "sqm", "size", "tileType", "unitPrice"],
            ),
        },
        "materials": {
            "type": "array",
            "items": _object(
                {
                    "item": _string(),
                    "quantity": _number(),
                    "unit": _string(),
                    "unitPrice": _number(),
                    "calculationLogic": _string(),
                },
                ["item", "quantity", "unit", "unitPrice"],
            ),
        },
        "adjustments": {
            "type": "array",
            "items": _object(
                {"description": _string(), "amount": _number()},
                ["description", "amount"],
            ),
        },
        "checklist": {
            "type": "array",
            "items": _object(
                {"item": _string(), "checked": {"type": "boolean"}},
                ["item", "checked"],
            ),
        },
        "workmanshipRate": _number(),
        "maintenance": _number(),
        "profitPercentage": _number(),
        "depositPercentage": _number(),
        "termsAndConditions": _string(),
        "proTips": {"type": "array", "items": _string()},
    },
    [
        "clientDetails",
        "tiles",
        "materials",
        "checklist",
        "adjustments",
        "workmanshipRate",
        "maintenance",
        "profitPercentage",
        "depositPercentage",
        "termsAndConditions",
        "proTips",
    ],
)


@dataclass(frozen=True)
class ImageData:
    """Raw image bytes plus their MIME type."""

    data: bytes
    media_type: str = "image/png"

    @classmethod
    def from_path(cls, path: Path | str) -> ImageData:
        path = Path(path)
        media_type = _MEDIA_TYPES.get(path.suffix.lower(), "image/png")
        return cls(path.read_bytes(), media_type)

    def to_block(self) -> dict[str, Any]:
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": self.media_type,
                "data": base64.standard_b64encode(self.data).decode("utf-8"),
            },
        }


def _plain_number(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def mock_quotation(text: str, settings: Settings) -> dict[str, Any]:
    """Deterministic quotation sized from the first ``NNm2`` in ``text``."""
    match = _SQM_PATTERN.search(text or "")
    sqm = float(match.group(1)) if match else _DEFAULT_MOCK_SQM
    return {
        "clientDetails": {
            "clientName": "Test Client (Local Mode)",
            "clientAddress": "123 Localhost Ave",
            "clientPhone": "0800-LOCAL-TEST",
            "projectName": "Sample Tiling Project",
        },
        "tiles": [
            {
                "category": "Floor Tiles (Mock)",
                "group": "Living Room",
                "cartons": math.ceil(sqm / 1.5),
                "sqm": sqm,
                "size": settings.default_sitting_room_size,
                "tileType": "Floor",
                "unitPrice": settings.sitting_room_tile_price,
            }
        ],
        "materials": [
            {
                "item": "Cement",
                "quantity": math.ceil(sqm / 5),
                "unit": "bags",
                "unitPrice": settings.cement_price,
                "calculationLogic": "1 bag per 5m2",
            },
            {
                "item": "White Cement",
                "quantity": 2,
                "unit": "bags",
                "unitPrice": settings.white_cement_price,
                "calculationLogic": "Approx 1 bag per 30m2",
            },
        ],
        "adjustments": [],
        "checklist": [
            {"item": "Surface preparation", "checked": True},
            {"item": "Tile alignment check", "checked": False},
            {"item": "Grouting", "checked": False},
        ],
        "workmanshipRate": settings.workmanship_rate,
        "maintenance": 0,
        "profitPercentage": 10,
        "depositPercentage": settings.default_deposit_percentage,
        "termsAndConditions": settings.default_terms_and_conditions,
        "proTips": [
            "Ensure floor is level before starting",
            "Large tiles require double buttering",
        ],
    }


def fallback_summary(total: float) -> str:
    return f"Summary: Total cost is {_plain_number(total)} Naira."


class QuotationAssistant(ABC):
    """Capabilities the quotation workflow needs from an AI collaborator."""

    @abstractmethod
    def extract_text(self, image: ImageData) -> str:
        """Return the text written on a photographed job note."""

    @abstractmethod
    def analyze_site(self, image: ImageData) -> str:
        """Return a short assessment of a site photo."""

    @abstractmethod
    def generate_quotation(self, text: str, settings: Settings) -> dict[str, Any]:
        """Draft a quotation payload (camelCase keys) from free-text notes."""

    @abstractmethod
    def refine_quotation(self, payload: dict[str, Any], instruction: str) -> dict[str, Any]:
        """Apply a natural-language instruction to a quotation payload."""

    @abstractmethod
    def summarize(self, payload: dict[str, Any], total: float) -> str:
        """One short spoken-style summary of a quotation."""


class LocalAssistant(QuotationAssistant):
    """Offline stand-in used when no API key is configured."""

    def extract_text(self, image: ImageData) -> str:
        return MOCK_OCR_TEXT

    def analyze_site(self, image: ImageData) -> str:
        return SITE_VISION_DISABLED

    def generate_quotation(self, text: str, settings: Settings) -> dict[str, Any]:
        return mock_quotation(text, settings)

    def refine_quotation(self, payload: dict[str, Any], instruction: str) -> dict[str, Any]:
        return payload

    def summarize(self, payload: dict[str, Any], total: float) -> str:
        return fallback_summary(total)


def _strip_fences(text: str) -> str:
    text = text.strip()
    if "```" in text:
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
    return text.strip()


def _response_text(response: Any) -> str:
    return "".join(
        getattr(block, "text", "")
        for block in response.content
        if getattr(block, "type", None) == "text"
    ).strip()


def _tool_input(response: Any) -> dict[str, Any]:
    for block in response.content:
        if getattr(block, "type", None) == "tool_use" and isinstance(block.input, dict):
            return block.input
    data = json.loads(_strip_fences(_response_text(response)))
    if not isinstance(data, dict):
        raise ValueError("Quotation response is not a JSON object")
    return data


def _quotation_prompt(text: str, settings: Settings) -> str:
    size_rules = "\n".join(
        f'* Size "{rule.size}" -> {_plain_number(rule.price)} NGN'
        for rule in settings.tile_prices_by_size
    )
    return f"""You are "Tiling Quotation Formatter & Calculator AI".
Convert this text into a professional quotation by calling the {QUOTATION_TOOL} tool.
Input: "{text}"
Rules:
1. Units: SR=Sitting Room, TW=Toilet Wall, TF=Toilet Floor, KW=Kitchen Wall, KF=Kitchen Floor.
2. Pricing: {size_rules}. Default Workmanship: {_plain_number(settings.workmanship_rate)}.
3. Cartons: wall tiles cover {settings.wall_tile_m2_per_carton}m2 per carton, floor tiles {settings.floor_tile_m2_per_carton}m2. Apply a wastage factor of {settings.wastage_factor}.
4. Materials: suggest cement, grout and adhesive based on total SQM.
5. Calculation Logic: in the materials array, explain HOW you got each quantity (e.g. '1 bag per 4m2 based on area').
6. Pro Tips: add 2-3 professional technical tips for this specific project."""


class ClaudeAssistant(QuotationAssistant):
    """Assistant backed by the Anthropic Messages API."""

    def __init__(self, config: AiConfig, client: Optional[Any] = None) -> None:
        self._model = config.model
        self._client = client or Anthropic(api_key=config.api_key)
        self._fallback = LocalAssistant()

    def _create(self, content: Any, **kwargs: Any) -> Any:
        return self._client.messages.create(
            model=self._model,
            max_tokens=MAX_TOKENS,
            messages=[{"role": "user", "content": content}],
            **kwargs,
        )

    def extract_text(self, image: ImageData) -> str:
        try:
            response = self._create([image.to_block(), {"type": "text", "text": OCR_PROMPT}])
            return _response_text(response)
        except _AI_ERRORS as exc:
            logger.warning("OCR failed: %s", exc)
            return OCR_FAILED

    def analyze_site(self, image: ImageData) -> str:
        try:
            response = self._create([image.to_block(), {"type": "text", "text": SITE_PROMPT}])
            return _response_text(response) or NO_SITE_ISSUES
        except _AI_ERRORS as exc:
            logger.warning("Site analysis failed: %s", exc)
            return SITE_ANALYSIS_FAILED

    def _structured(self, prompt: str) -> dict[str, Any]:
        response = self._create(
            prompt,
            tools=[
                {
                    "name": QUOTATION_TOOL,
                    "description": "Record a structured tiling quotation.",
                    "input_schema": QUOTATION_SCHEMA,
                }
            ],
            tool_choice={"type": "tool", "name": QUOTATION_TOOL},
        )
        return _tool_input(response)

    def generate_quotation(self, text: str, settings: Settings) -> dict[str, Any]:
        try:
            return self._structured(_quotation_prompt(text, settings))
        except _AI_ERRORS as exc:
            logger.warning("Quotation generation failed, using local draft: %s", exc)
            return self._fallback.generate_quotation(text, settings)

    def refine_quotation(self, payload: dict[str, Any], instruction: str) -> dict[str, Any]:
        prompt = (
            "Update the following tiling quotation JSON based on this instruction: "
            f'"{instruction}".\nKeep the JSON structure identical.\n'
            f"Current JSON: {json.dumps(payload, ensure_ascii=False)}"
        )
        try:
            return {**payload, **self._structured(prompt)}
        except _AI_ERRORS as exc:
            logger.warning("Refinement failed: %s", exc)
            return payload

    def summarize(self, payload: dict[str, Any], total: float) -> str:
        details = payload.get("clientDetails") or {}
        prompt = (
            f"Summarize this quote for {details.get('clientName', '')} for project "
            f"{details.get('projectName', '')}. Total: {_plain_number(total)}. Max 50 words."
        )
        try:
            return _response_text(self._create(prompt)) or SUMMARY_UNAVAILABLE
        except _AI_ERRORS as exc:
            logger.warning("Summary failed: %s", exc)
            return SUMMARY_FAILED


def build_assistant(config: AiConfig, client: Optional[Any] = None) -> QuotationAssistant:
    """Claude when credentials are present, otherwise the local stand-in."""
    if client is not None or config.is_configured:
        return ClaudeAssistant(config, client)
    logger.info("No AI credentials configured; using local assistant.")
    return LocalAssistant()
