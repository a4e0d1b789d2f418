from __future__ import annotations

import html
import re

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

CODE_BLOCK_RE = re.compile(
    r"<pre><code(?P<attrs>[^>]*)>(?P<code>.*?)</code></pre>", re.DOTALL | re.IGNORECASE
)
CLASS_ATTR_RE = re.compile(r'class="(?P<classes>[^"]*)"')


class SyntaxHighlightError(Exception):
    pass


def resolve_style(theme: str):
    candidates = [theme, theme.replace("_", "-")]
    for name in candidates:
        try:
            return get_style_by_name(name)
        except ClassNotFound:
            continue
    raise SyntaxHighlightError(f"unknown highlighting theme {theme!r}")


def language_from_attrs(attrs: str) -> str:
    match = CLASS_ATTR_RE.search(attrs)
    if not match:
        return ""
    for cls in match.group("classes").split():
        if cls.startswith("language-"):
            return cls[len("language-") :]
    return ""


def highlight_code_block(code: str, lang: str, style) -> str:
    try:
        lexer = get_lexer_by_name(lang.strip().lower(), stripnl=False) if lang else TextLexer()
    except ClassNotFound:
        lexer = TextLexer()
    formatter = HtmlFormatter(style=style, noclasses=True, cssclass="code-block")
    return highlight(code, lexer, formatter)


def highlight_html(html_text: str, theme: str) -> str:
    """Re-render every ``<pre><code>`` block of ``html_text`` with Pygments."""
    if "<pre><code" not in html_text:
        return html_text
    style = resolve_style(theme)

    def repl(match: re.Match) -> str:
        code = html.unescape(match.group("code"))
        lang = language_from_attrs(match.group("attrs"))
        try:
            return highlight_code_block(code, lang, style)
        except Exception as exc:
            raise SyntaxHighlightError(str(exc)) from exc

    return CODE_BLOCK_RE.sub(repl, html_text)
