"""Configuration capability: persona, sass level and channel routing."""

import dataclasses
import re
from typing import Any

from ..intents.detectors import mentions, normalize_text
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import (
    CapabilityRequest,
    CapabilityResult,
    CommunityConfig,
    IntentType,
    Outcome,
)
from ..models.sessions import PERSONAS
from ..prompts import combined_prompt
from ..storage import IStorage
from .extraction import extract_fields

logger = get_logger(__name__)

MIN_CONFIDENCE = 0.7
KEYWORD_CONFIDENCE = 0.9
SASS_RANGE = range(0, 6)

# setting name -> CommunityConfig field
SETTING_FIELDS = {
    "persona": "persona",
    "sass": "sass_level",
    "schedule_channel": "schedule_channel_id",
    "events_channel": "events_channel_id",
    "regular_channel": "regular_channel_id",
}

SETTING_LABELS = {
    "persona": "persona",
    "sass": "sass level",
    "schedule_channel": "schedule channel",
    "events_channel": "events channel",
    "regular_channel": "regular channel",
}

_CHANNEL_MENTION = re.compile(r"<#(\d+)>")
_SASS_VALUE = re.compile(r"\b([0-5])\b")

EXTRACTION_PROMPT = """\
Extract the configuration change from the message below. Return ONLY a JSON object with:
- setting: one of "persona", "sass", "schedule_channel", "events_channel", "regular_channel"
- value: for persona one of {personas}; for sass a number from 0 to 5; for channels the channel id
- confidence: how sure you are about this extraction, 0 to 1
Use null for anything you cannot determine.

Message: "{content}"
"""


def keyword_fields(content: str) -> dict[str, Any]:
    text = normalize_text(content)
    persona = next((p for p in PERSONAS if p in text), None)
    if persona or "persona" in text:
        fields: dict[str, Any] = {"setting": "persona", "confidence": KEYWORD_CONFIDENCE}
        if persona:
            fields["value"] = persona
        return fields

    if "sass" in text:
        match = _SASS_VALUE.search(text)
        fields = {"setting": "sass", "confidence": KEYWORD_CONFIDENCE}
        if match:
            fields["value"] = int(match.group(1))
        return fields

    if mentions(text, "channel"):
        for kind in ("schedule", "events", "regular"):
            if kind in text:
                fields = {"setting": f"{kind}_channel", "confidence": KEYWORD_CONFIDENCE}
                match = _CHANNEL_MENTION.search(content)
                if match:
                    fields["value"] = match.group(1)
                return fields

    return {}


def validate(setting: str, value: Any) -> tuple[Any, str | None]:
    """Coerced value and an error message, if any."""
    if setting == "persona":
        persona = str(value).strip().lower()
        if persona not in PERSONAS:
            return None, f"Unknown persona '{value}'. Choose one of: {', '.join(PERSONAS)}."
        return persona, None
    if setting == "sass":
        try:
            level = int(value)
        except (TypeError, ValueError):
            return None, f"Sass level must be a number from 0 to 5, not '{value}'."
        if level not in SASS_RANGE:
            return None, "Sass level must be between 0 and 5."
        return level, None
    if setting in SETTING_FIELDS:
        channel_id = _CHANNEL_MENTION.sub(r"\1", str(value)).strip()
        return channel_id, None
    return None, f"Unknown setting: {setting}"


class ConfigurationCapability:
    """Updates a community's stored configuration from free text."""

    intent = IntentType.CONFIGURATION

    def __init__(self, storage: IStorage, llm: ILLMProvider | None = None):
        self._storage = storage
        self._llm = llm

    async def process(self, request: CapabilityRequest) -> CapabilityResult:
        community_id = request.message.community_id
        if not community_id:
            return CapabilityResult.failure(
                "Configuration can only be changed inside a server."
            )

        extracted = keyword_fields(request.content)
        extracted.update(
            await extract_fields(
                self._llm,
                combined_prompt(),
                EXTRACTION_PROMPT.format(
                    content=request.content, personas=", ".join(PERSONAS)
                ),
            )
        )
        # A follow-up that restates a value corrects the earlier one
        extracted.update(keyword_fields(request.corrections))
        fields = {**request.seed_data, **extracted}

        try:
            confidence = float(fields.get("confidence", 0))
        except (TypeError, ValueError):
            confidence = 0.0

        missing = [name for name in ("setting", "value") if fields.get(name) in (None, "")]
        if confidence < MIN_CONFIDENCE and "setting" not in missing:
            missing.insert(0, "setting")
        if missing:
            logger.info(
                f"Configuration incomplete (confidence {confidence:.2f}), missing {missing}"
            )
            return CapabilityResult(success=False, data=fields, missing_fields=missing)

        setting = fields["setting"]
        value, error = validate(setting, fields["value"])
        if error:
            return CapabilityResult.failure(error)

        config = await self._storage.get_community_config(community_id)
        if config is None:
            config = CommunityConfig(community_id=community_id)
        config = dataclasses.replace(config, **{SETTING_FIELDS[setting]: value})
        await self._storage.save_community_config(config)

        logger.info(f"Community {community_id} set {setting} to {value}")
        return CapabilityResult(success=True, data={"setting": setting, "value": value})

    async def render_response(self, result: CapabilityResult) -> str:
        outcome = result.outcome
        if outcome == Outcome.SUCCESS:
            setting = result.data["setting"]
            value = result.data["value"]
            if setting.endswith("_channel"):
                value = f"<#{value}>"
            return f"Configuration updated: the {SETTING_LABELS[setting]} is now {value}."
        if outcome == Outcome.INCOMPLETE:
            if "setting" in result.missing_fields:
                return (
                    "I'm not sure which setting you want to change. Try something like "
                    "\"change your persona to bard\" or \"set sass to 4\"."
                )
            label = SETTING_LABELS.get(result.data.get("setting"), "setting")
            return f"What should I set the {label} to?"
        return f"Sorry, I couldn't update the configuration: {result.error or 'unknown error'}"
