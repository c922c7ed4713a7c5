"""Provider-agnostic request types for chat completions."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, PrivateAttr, TypeAdapter


class TextPart(BaseModel):
    """Plain text content part."""

    type: Literal["text"] = "text"
    text: str


class ImageURL(BaseModel):
    url: str
    detail: str | None = None


class ImagePart(BaseModel):
    """Image content part (dropped before transmission)."""

    type: Literal["image_url"] = "image_url"
    image_url: ImageURL


ContentPart = Annotated[TextPart | ImagePart, Field(discriminator="type")]


class ChatMessage(BaseModel):
    """A single chat message."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | list[ContentPart]

    def flattened_content(self) -> str:
        """Collapse multi-part content into one text blob.

        Text parts are joined with newlines in order; empty text and
        non-text parts are dropped.
        """
        if isinstance(self.content, str):
            return self.content
        return "\n".join(
            part.text
            for part in self.content
            if isinstance(part, TextPart) and part.text
        )


class ToolDefinition(BaseModel):
    """A function the model may call."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)


class ResponseModel(BaseModel):
    """Structured output the caller wants extracted from the completion.

    ``schema_type`` is anything pydantic can validate: a ``BaseModel``
    subclass, ``list[SomeModel]``, a ``TypedDict`` and so on.
    """

    name: str
    schema_type: Any

    _adapter: TypeAdapter = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._adapter = TypeAdapter(self.schema_type)

    @classmethod
    def from_type(cls, schema_type: Any, name: str | None = None) -> ResponseModel:
        return cls(
            name=name or getattr(schema_type, "__name__", "Response"),
            schema_type=schema_type,
        )

    def json_schema(self) -> dict[str, Any]:
        return self._adapter.json_schema()

    def validate_value(self, value: Any) -> Any:
        """Validate an already decoded value; raises pydantic.ValidationError."""
        return self._adapter.validate_python(value)

    def validate_json(self, content: str | bytes) -> Any:
        """Strictly validate JSON text returned by a model.

        Strict mode rejects coerced values such as ``"4"`` for an integer
        field, so the output has to match the schema sent in the prompt.
        """
        return self._adapter.validate_json(content, strict=True)

    def dump_value(self, value: Any) -> Any:
        """JSON-compatible form of a validated value."""
        return self._adapter.dump_python(value, mode="json")

    def descriptor(self) -> dict[str, Any]:
        return {"name": self.name, "schema": self.json_schema()}


class CompletionRequest(BaseModel):
    """A chat completion request independent of any provider."""

    messages: list[ChatMessage]
    temperature: float | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    max_tokens: int | None = None
    tools: list[ToolDefinition] | None = None
    response_model: ResponseModel | None = None
    # Correlation only; never part of the cache key
    request_id: str | None = None

    def cache_options(self, model: str) -> dict[str, Any]:
        """Fields that determine the response, used to derive the cache key."""
        return {
            "model": model,
            "messages": [m.model_dump(mode="json") for m in self.messages],
            "temperature": self.temperature,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
            "response_model": (
                self.response_model.descriptor() if self.response_model else None
            ),
        }

    def log_options(self) -> dict[str, Any]:
        """Request summary for log lines, without image payloads."""
        options = self.model_dump(
            mode="json",
            exclude={"messages", "response_model"},
            exclude_none=True,
        )
        options["messages"] = [
            {"role": m.role, "content": m.flattened_content()} for m in self.messages
        ]
        if self.response_model:
            options["response_model"] = self.response_model.name
        return options
