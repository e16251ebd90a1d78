"""
Content Engine - Text Processing Utilities
==========================================
HTML-to-text, word counting, title cleanup and HTML structure repair
for LLM output.
"""

import re

from bs4 import BeautifulSoup

_LIST_BULLET = re.compile(r"^[\-\*•]\s")
_LIST_NUMBER = re.compile(r"^\d+[\.\)]\s")
_BLOCK_START = re.compile(r"^<(h[1-6]|p|ul|ol|div|table|blockquote)\b", re.IGNORECASE)
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n|<br\s*/?>\s*<br\s*/?>", re.IGNORECASE)
_LISTICLE_TITLE = re.compile(
    r"^(\d+\s+(?:Best|Top|Ways|Steps|Tips|Reasons|Types)\s+.{10,60}?)(?:\s*[-:;,]|$)",
    re.IGNORECASE,
)


def strip_html(html_content: str) -> str:
    """Visible text of an HTML fragment, whitespace-collapsed."""
    if not html_content:
        return ""
    text = BeautifulSoup(html_content, "html.parser").get_text(" ")
    return re.sub(r"\s+", " ", text).strip()


def count_words(text: str) -> int:
    if not text:
        return 0
    return len(text.split())


def count_html_words(html_content: str) -> int:
    return count_words(strip_html(html_content))


def truncate_text(text: str, max_length: int = 500) -> str:
    """Truncate text to max_length, ending at a word boundary."""
    if not text or len(text) <= max_length:
        return text or ""
    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + "..."


def clean_title(title: str) -> str:
    """
    Turn a raw LLM title into a usable SEO title: drop label prefixes,
    quotes, markdown and trailing periods; shorten description-like
    titles past 80 chars at a colon/dash or word boundary.
    """
    if not title:
        return ""
    cleaned = re.sub(r"^\s*(?:seo\s+)?title\s*:\s*", "", title.strip(), flags=re.IGNORECASE)
    cleaned = cleaned.replace("**", "").replace("#", "").strip().strip("\"'“”").strip()
    cleaned = re.sub(r"\s+", " ", cleaned)
    if cleaned.endswith("."):
        cleaned = cleaned[:-1].strip()

    if len(cleaned) > 80:
        listicle = _LISTICLE_TITLE.match(cleaned)
        colon_index = cleaned.find(":")
        dash_index = cleaned.find(" - ")
        if listicle:
            cleaned = listicle.group(1).strip()
        elif 20 < colon_index < 70:
            cleaned = cleaned[:colon_index].strip()
        elif 20 < dash_index < 70:
            cleaned = cleaned[:dash_index].strip()
        else:
            cut = cleaned.rfind(" ", 0, 60)
            cleaned = cleaned[:cut].strip() if cut > 30 else cleaned[:60].strip()

    if cleaned and cleaned[0].islower():
        cleaned = cleaned[0].upper() + cleaned[1:]
    return cleaned


def slugify(title: str, max_length: int = 60) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", (title or "").lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug)
    return slug[:max_length].strip("-")


def _segment_to_html(segment: str) -> str:
    if _BLOCK_START.match(segment):
        return segment
    if _LIST_BULLET.match(segment) or _LIST_NUMBER.match(segment):
        tag = "ul" if _LIST_BULLET.match(segment) else "ol"
        marker = _LIST_BULLET if tag == "ul" else _LIST_NUMBER
        items = [line.strip() for line in segment.splitlines() if line.strip()]
        lis = "\n".join(f"<li>{marker.sub('', item, count=1).strip()}</li>" for item in items)
        return f"<{tag}>\n{lis}\n</{tag}>"
    if len(segment) < 100 and not segment.endswith((".", "?", "!")):
        return f"<h3>{segment.replace('**', '').strip()}</h3>"
    return f"<p>{segment}</p>"


def ensure_html_structure(content: str) -> str:
    """
    Repair LLM output that came back as plain text or markdown-ish
    paragraphs. Content that already has <p> and <h2>/<h3> is only
    re-spaced.
    """
    if not content:
        return content
    has_paragraphs = re.search(r"<p[^>]*>", content, re.IGNORECASE)
    has_headings = re.search(r"<h[23][^>]*>", content, re.IGNORECASE)
    if has_paragraphs and has_headings:
        return re.sub(r"(</(?:h[23]|p|ul|ol)>)(?!\s*<)", r"\1\n\n", content, flags=re.IGNORECASE)

    segments = [s.strip() for s in _PARAGRAPH_SPLIT.split(content)]
    return "\n\n".join(_segment_to_html(s) for s in segments if s)
