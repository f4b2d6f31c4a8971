from __future__ import annotations

import base64
import binascii
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a helpful and brilliant AI assistant. When sources are provided, ground your answer in them. "
    "If you can't answer from the sources, say so. Respond in Markdown format."
)

WEB_SOURCE_DEFAULT_TITLE = "Untitled Source"
MAPS_SOURCE_DEFAULT_TITLE = "Map Location"


class _Record(BaseModel):
    """Immutable record persisted with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class GroundingSource(_Record):
    type: Literal["web", "maps"]
    uri: str
    title: str


class LocalSource(_Record):
    id: str
    title: str
    content: str


class Message(_Record):
    id: str
    role: Literal["user", "model"]
    text: str = ""
    image: Optional[str] = None
    sources: Optional[List[GroundingSource]] = None


class ChatConfig(_Record):
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    temperature: float = Field(0.7, ge=0.0, le=1.0)
    top_k: int = Field(40, ge=1)
    top_p: float = Field(0.95, ge=0.0, le=1.0)
    use_grounding: bool = False
    use_maps_grounding: bool = False
    thinking_budget: int = Field(0, ge=0)

    def with_value(self, field: str, value) -> "ChatConfig":
        """Return a fresh, validated copy with one field changed."""
        data = self.model_dump()
        data[field] = value
        return ChatConfig.model_validate(data)


class ChatSession(_Record):
    id: str
    title: str = "New Chat"
    messages: List[Message] = Field(default_factory=list)
    config: ChatConfig = Field(default_factory=ChatConfig)
    local_sources: List[LocalSource] = Field(default_factory=list)
    is_renaming: bool = False
    manually_renamed: bool = False


# Request-side types. These are never persisted.


class TextPart(_Record):
    text: str


class InlineData(_Record):
    mime_type: str
    data: str

    @field_validator("mime_type", "data")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("inline data needs a mime type and a payload")
        return value


class InlineBinaryPart(_Record):
    inline_data: InlineData


Part = Union[TextPart, InlineBinaryPart]


class Content(_Record):
    role: Literal["user", "model"]
    parts: List[Part]


class LatLng(_Record):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class ImageAttachment(_Record):
    mime_type: str
    data: str

    @classmethod
    def from_data_uri(cls, uri: str) -> Optional["ImageAttachment"]:
        """Parse ``data:<mime>;base64,<payload>``; None when it is not one."""
        raw = (uri or "").strip()
        if not raw.startswith("data:") or "," not in raw:
            return None
        meta, payload = raw.split(",", 1)
        if ";base64" not in meta:
            return None
        mime_type = meta[len("data:"):].split(";", 1)[0].strip()
        if not mime_type or not payload:
            return None
        try:
            base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            return None
        return cls(mime_type=mime_type, data=payload)

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def to_part(self) -> InlineBinaryPart:
        return InlineBinaryPart(inline_data=InlineData(mime_type=self.mime_type, data=self.data))


TOOL_WEB_SEARCH = "googleSearch"
TOOL_MAPS = "googleMaps"


class GenerateRequest(_Record):
    contents: List[Content]
    system_instruction: str = ""
    temperature: float
    top_k: int
    top_p: float
    thinking_budget: Optional[int] = None
    tools: List[str] = Field(default_factory=list)
    location: Optional[LatLng] = None

    def to_payload(self) -> dict:
        """Gemini REST body for generateContent / streamGenerateContent."""
        generation = {
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
        }
        if self.thinking_budget:
            generation["thinkingConfig"] = {"thinkingBudget": self.thinking_budget}

        payload: dict = {
            "contents": [c.model_dump(by_alias=True) for c in self.contents],
            "generationConfig": generation,
        }
        if self.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": self.system_instruction}]}
        if self.tools:
            payload["tools"] = [{name: {}} for name in self.tools]
        if self.location is not None:
            payload["toolConfig"] = {"retrievalConfig": {"latLng": self.location.model_dump()}}
        return payload
