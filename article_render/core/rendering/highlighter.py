"""
Code Highlighter
================

Syntax highlighting for preformatted code regions of a rendered article.
Highlighting is presentation only: the text content of every code region is
left exactly as loaded.
"""

from typing import Any, Dict, Optional

from bs4 import BeautifulSoup, Tag
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from article_render.config.logging import get_logger
from article_render.config.settings import get_settings
from article_render.models.schemas import RenderedView

logger = get_logger(__name__)

HIGHLIGHTED_ATTR = "data-highlighted"
CSS_CLASS = "highlight"


class CodeHighlighter:
    """Pygments-backed highlighter for ``pre > code`` regions."""

    def __init__(self, style: Optional[str] = None, default_language: Optional[str] = None) -> None:
        settings = get_settings()
        self.style = style or settings.highlight_style
        self.default_language = default_language or settings.default_language
        self.logger: Any = logger.bind(component="highlighter", style=self.style)
        self.formatter = HtmlFormatter(nowrap=True, style=self.style)
        self._lexers: Dict[str, Lexer] = {}

    def stylesheet(self) -> str:
        """CSS rules for the token classes emitted by this highlighter."""
        return HtmlFormatter(style=self.style).get_style_defs(f".{CSS_CLASS}")

    def lexer_for(self, language: Optional[str]) -> Lexer:
        """
        Lexer for a declared dialect, falling back to plain text.

        Lexers never strip or append newlines so token text concatenates
        back to the original input.
        """
        name = (language or self.default_language or "text").lower()
        if name not in self._lexers:
            try:
                lexer = get_lexer_by_name(name, stripnl=False, stripall=False, ensurenl=False)
            except ClassNotFound:
                self.logger.debug("No lexer for dialect, using plain text", language=name)
                lexer = TextLexer(stripnl=False, stripall=False, ensurenl=False)
            self._lexers[name] = lexer
        return self._lexers[name]

    def highlight_region(self, code: Tag) -> bool:
        """
        Highlight a single code region in place.

        Args:
            code: ``<code>`` element inside a ``<pre>``

        Returns:
            True if the region was highlighted, False if it was skipped
        """
        if code.get(HIGHLIGHTED_ATTR) == "yes":
            return False

        original = code.get_text()
        language = code.get("data-lang")
        lexer = self.lexer_for(language if isinstance(language, str) else None)

        markup = highlight(original, lexer, self.formatter)
        # The formatter terminates the last line even when the source does not
        if markup.endswith("\n") and not original.endswith("\n"):
            markup = markup[:-1]
        fragment = BeautifulSoup(markup, "html.parser")

        if fragment.get_text() != original:
            self.logger.warning(
                "Highlighted text differs from source, leaving region unstyled",
                language=language,
            )
            return False

        code.clear()
        for child in list(fragment.contents):
            code.append(child.extract())
        code[HIGHLIGHTED_ATTR] = "yes"

        pre = code.parent
        if isinstance(pre, Tag):
            classes = pre.get("class") or []
            if CSS_CLASS not in classes:
                pre["class"] = list(classes) + [CSS_CLASS]
        return True

    def highlight_view(self, view: RenderedView) -> RenderedView:
        """
        Highlight every code region of a rendered view in place.

        Already highlighted regions are skipped, so repeated calls are no-ops.
        A region that fails to highlight stays unstyled.
        """
        highlighted = 0
        for code in view.code_regions():
            try:
                if self.highlight_region(code):
                    highlighted += 1
            except Exception as e:
                self.logger.warning(
                    "Code highlighting failed, leaving region unstyled",
                    slug=view.document.slug,
                    error=str(e),
                )

        self.logger.info("Code highlighting completed", slug=view.document.slug, regions=highlighted)
        return view
