"""Schemas for LINE content generation and its SSE stream."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


VARIATION_COUNT: int = 3
DONE_SENTINEL: str = "[DONE]"
SSE_DONE: str = f"data: {DONE_SENTINEL}\n\n"

# Backend (OpenAI Responses API) event names the pipeline reacts to. Every
# other backend event is passed through untouched.
TEXT_DELTA_EVENT = "response.output_text.delta"
TEXT_DONE_EVENT = "response.output_text.done"
RESPONSE_COMPLETED_EVENT = "response.completed"


class ScrapedArticle(BaseModel):
    """Article content resolved from the source URL (or supplied directly)."""

    title: str
    content: str
    images: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class GenerationRequest(BaseModel):
    """Caller-owned configuration for one generation request.

    Every style option carries a default so that a request with only
    ``blog_url`` is valid. The same object is shared, unchanged, by all
    three variation sessions.
    """

    blog_url: str = Field(..., min_length=1, max_length=2048)
    company_name: str = ""
    company_url: str = ""
    content_length: str = "300文字程度"
    writing_style: str = "丁寧"
    line_break_style: str = "句点ごと"
    bracket_type: str = "【】"
    honorific: str = "様"
    child_honorific: str = "ちゃん"
    add_emotional_intro: bool = True
    emoji_types: str = "😊✨🎉"
    emoji_count: int = Field(default=3, ge=0, le=20)
    bullet_point: str = "・"
    date_format: str = "M月D日(曜日)"
    greeting_text: str = ""
    redirect_text: str = "詳しくはこちらをご覧ください"
    reference_template: str | None = None
    scraped_content: ScrapedArticle | None = None
    selected_images: list[str] = Field(default_factory=list)
    use_web_search: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")


class ScrapeRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)

    model_config = ConfigDict(extra="forbid")


class GeneratedVariation(BaseModel):
    """Final text for one variation plus its markdown rendering."""

    content: str
    markdown: str


class BatchGenerationResult(BaseModel):
    scraped_content: ScrapedArticle
    generated_options: list[GeneratedVariation]


class StreamEvent(BaseModel):
    """One message on the generation SSE channel.

    Only ``type`` is fixed; every other field depends on the event kind.
    Backend events are validated into this model and passed through with
    all of their fields, so ``extra`` is allowed.
    """

    type: str

    model_config = ConfigDict(extra="allow", frozen=True)

    def to_sse(self) -> str:
        return f"data: {self.model_dump_json()}\n\n"

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    @classmethod
    def build(cls, type_: str, **fields: Any) -> StreamEvent:
        return cls.model_validate({"type": type_, **fields})

    @classmethod
    def process_start(cls) -> StreamEvent:
        return cls.build("process_start", message="処理を開始しています...")

    @classmethod
    def scraped_content(cls, article: ScrapedArticle) -> StreamEvent:
        return cls.build(
            "scraped_content",
            data={
                "title": article.title,
                "contentLength": len(article.content),
                "imageCount": len(article.images),
            },
        )

    @classmethod
    def scraping_warning(cls, warning: str) -> StreamEvent:
        return cls.build("scraping_warning", warning=warning)

    @classmethod
    def variation_info(cls, index: int) -> StreamEvent:
        return cls.build(
            "variation_info",
            index=index,
            total=VARIATION_COUNT,
            message=f"バリエーション {index + 1}/{VARIATION_COUNT} を生成中...",
        )

    @classmethod
    def generation_starting(cls) -> StreamEvent:
        return cls.build("generation_starting", message="コンテンツ生成を開始します")

    @classmethod
    def web_search_complete(cls) -> StreamEvent:
        return cls.build("web_search_complete", message="Web検索が完了しました")

    @classmethod
    def web_search_error(cls, error: str) -> StreamEvent:
        return cls.build("web_search_error", error=error)

    @classmethod
    def variation_complete(cls, index: int) -> StreamEvent:
        return cls.build(
            "variation_complete",
            index=index,
            message=f"バリエーション {index + 1} の生成が完了しました",
        )

    @classmethod
    def error(cls, message: str) -> StreamEvent:
        return cls.build("error", error=message)
