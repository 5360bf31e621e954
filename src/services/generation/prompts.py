"""Prompt assembly for LINE broadcast variations."""

from __future__ import annotations

from schemas.generation import VARIATION_COUNT, GenerationRequest, ScrapedArticle


SYSTEM_ROLE = (
    "あなたは企業のLINE配信記事を専門に書くコピーライターです。"
    "元のブログ記事を、LINEで読みやすい配信文に書き直してください。"
)

INSTRUCTIONS = """# 指示
1. 元記事の主旨を保ったまま、LINE配信向けの親しみやすい文章にしてください。
2. 指定された絵文字を適切な位置に使ってください。
3. 最後に必ず元記事への誘導文を入れてください。
4. 読者目線で、続きを読みたくなる内容にしてください。
5. 指定された文字数に収めてください。
6. 必要に応じて箇条書きを使ってください。
7. 追加情報がある場合は活用してください。ただし出典URLは含めないでください。

出力はLINEで配信する本文のみとし、マークダウン記法は使わないでください。"""


def _image_instruction(image_count: int) -> str:
    if image_count == 0:
        return ""
    return (
        f"記事には{image_count}枚の画像が添付されます。"
        "画像には言及せず、本文のテキストのみを作成してください。"
    )


def _template_instruction(reference_template: str | None) -> str:
    if not reference_template:
        return ""
    return (
        "次のテンプレートの文調と構成を参考にしてください:\n\n"
        f"{reference_template}"
    )


def _enhancement_section(summary: str | None) -> str:
    if not summary:
        return ""
    return (
        "# Web検索で得た追加情報\n\n"
        f"{summary}\n\n"
        "専門的になりすぎないよう、読みやすさを優先して取り入れてください。"
    )


def build_prompt(
    request: GenerationRequest,
    article: ScrapedArticle,
    *,
    enhancement_summary: str | None = None,
    max_article_chars: int = 1500,
) -> str:
    """Build the instruction prompt shared by all variations of a request.

    The article body is truncated to ``max_article_chars`` so that long
    posts do not crowd out the formatting requirements.
    """
    image_count = len(request.selected_images)
    requirements = "\n".join(
        [
            "# LINE配信記事の要件",
            f"- 記事の長さ: {request.content_length}",
            f"- 文体: {request.writing_style}",
            f"- 改行位置: {request.line_break_style}",
            f"- かっこの種類: {request.bracket_type}",
            f"- 敬称: {request.honorific}",
            f"- 子どもの敬称: {request.child_honorific}",
            "- 感情に訴える書き出し: "
            + ("必要" if request.add_emotional_intro else "不要"),
            f"- 絵文字の種類: {request.emoji_types}",
            f"- 絵文字の量: 1配信あたり{request.emoji_count}個程度",
            f"- 箇条書き記号: {request.bullet_point}",
            f"- 日時フォーマット: {request.date_format}",
            f"- 挨拶文: {request.greeting_text}",
            f"- 元記事への誘導文: {request.redirect_text}",
            "- 画像: " + (f"あり ({image_count}枚)" if image_count else "なし"),
        ]
    )
    sections = [
        SYSTEM_ROLE,
        "# 企業情報\n"
        f"- 企業名: {request.company_name}\n"
        f"- 企業URL: {request.company_url}",
        "# 元のブログ記事\n"
        f"タイトル: {article.title}\n\n"
        f"本文:\n{article.content[:max_article_chars]}",
        _enhancement_section(enhancement_summary),
        requirements,
        _image_instruction(image_count),
        _template_instruction(request.reference_template),
        INSTRUCTIONS,
    ]
    return "\n\n".join(section for section in sections if section)


def build_variation_input(index: int) -> str:
    """User input asking for one specific variation."""
    number = index + 1
    return (
        f"LINE配信記事のバリエーション{number}/{VARIATION_COUNT}を作成してください。"
        f"バリエーション{number}は、他のバリエーションとは異なる表現と構成にしてください。"
    )
