"""Deterministic text helpers shared by the batch endpoint and the client."""

from __future__ import annotations

from collections.abc import Sequence


DEFAULT_FALLBACK_TITLE = "この記事"


def format_as_markdown(
    content: str, images: Sequence[str] = (), blog_url: str | None = None
) -> str:
    """Append image references (in selection order) and the source link."""
    markdown = content
    for i, url in enumerate(images):
        markdown += f"\n\n![記事画像 {i + 1}]({url})"
    if blog_url:
        markdown += f"\n\n[詳細を見る]({blog_url})"
    return markdown


def fallback_content(index: int, title: str | None) -> str:
    """Placeholder text for a variation whose generation failed.

    Kept on one line so the variation number and the title can be matched
    together.
    """
    return (
        f"バリエーション {index + 1} の生成に失敗しました。"
        f"「{title or DEFAULT_FALLBACK_TITLE}」についての情報は元の記事をご覧ください。"
    )


def empty_variation_content(index: int, title: str) -> str:
    """Default text the batch endpoint uses when a variation came back empty."""
    return (
        f"LINE配信記事 {index + 1}\n\n"
        f"{title}に関する情報をお届けします。\n\n"
        "詳しくは元記事をご覧ください！"
    )
