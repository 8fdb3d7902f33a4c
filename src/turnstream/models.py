from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class Usage(BaseModel):
    """Token accounting reported by a completion event.

    Counts the server leaves out, sends as null, or sends as something
    other than an integer are ``None``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    prompt_tokens: int | None = Field(default=None, alias="promptTokens")
    completion_tokens: int | None = Field(default=None, alias="completionTokens")

    @field_validator("prompt_tokens", "completion_tokens", mode="wrap")
    @classmethod
    def _count_or_none(cls, value, handler):
        try:
            return handler(value)
        except ValidationError:
            return None


class FAQMetadata(BaseModel):
    title: str
    content: str


class FAQResult(BaseModel):
    """One retrieval hit returned by a tool result event."""

    id: str
    score: float
    metadata: FAQMetadata


class ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    query: str
    index_name: str = Field(alias="indexName")
    top_k: int = Field(alias="topK")


class ToolCallRecord(BaseModel):
    """A tool invocation seen during the turn.

    ``args`` and ``result`` are kept exactly as they arrived; use
    :meth:`tool_args` and :meth:`faq_results` for typed access.
    """

    id: str | None = None
    name: str | None = None
    args: Any = None
    result: Any = None

    def tool_args(self) -> ToolArgs:
        return ToolArgs.model_validate(self.args)

    def faq_results(self) -> list[FAQResult]:
        if self.result is None:
            return []
        return [FAQResult.model_validate(r) for r in self.result]

    def to_wire(self) -> dict:
        data = {"id": self.id, "name": self.name, "args": self.args}
        if self.result is not None:
            data["result"] = self.result
        return data


class TurnAggregate(BaseModel):
    """Everything decoded from one assistant turn.

    ``response_text`` and ``tool_calls`` only ever grow.  ``usage`` and
    ``finish_reason`` are replaced whole by each completion event that
    carries them.
    """

    model_config = ConfigDict(populate_by_name=True)

    message_id: str | None = Field(default=None, alias="messageId")
    tool_calls: list[ToolCallRecord] = Field(default_factory=list, alias="toolCalls")
    response_text: str = Field(default="", alias="responseText")
    usage: Usage | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")
    is_continued: bool = Field(default=False, alias="isContinued")

    def to_wire(self) -> dict:
        """Return the camelCase shape used by protocol consumers."""
        return {
            "messageId": self.message_id,
            "toolCalls": [tc.to_wire() for tc in self.tool_calls],
            "responseText": self.response_text,
            "usage": self.usage.model_dump(by_alias=True) if self.usage else None,
            "finishReason": self.finish_reason,
            "isContinued": self.is_continued,
        }
