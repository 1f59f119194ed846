"""
Markup Parser
=============

Core markup loading engine for converting article sources into immutable
article documents for HTML generation.
Supports HTML pages and YAML manifests with structural validation.
"""

from typing import Dict, List, Any, Optional, Set, Union
import copy
import re
import time
from abc import ABC, abstractmethod

import yaml  # type: ignore[import-untyped]
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement, PreformattedString
from cerberus import Validator  # type: ignore[import-untyped]

from article_render.config.logging import get_logger
from article_render.config.settings import get_settings
from article_render.core.assets import check_image_sequence, slug_from_images
from article_render.core.markup.sanitizer import clean_fragment, sanitize_inline
from article_render.models.schemas import (
    ArticleDocument,
    BlockType,
    LoadResult,
    SourceFormat,
)

logger = get_logger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
BLOCK_TAGS = HEADING_TAGS + ["p", "li", "img", "pre"]
TEXT_BLOCK_TAGS = HEADING_TAGS + ["p", "li", "pre"]

# Elements whose text is never article prose
NON_CONTENT_TAGS = [
    "head", "title", "style", "script", "noscript", "template",
    "svg", "math", "select", "textarea", "button",
]

# Tags that flow inside a line of text rather than starting a new block
PHRASING_TAGS = frozenset(
    {
        "a", "abbr", "b", "bdi", "bdo", "br", "cite", "code", "data", "del", "dfn",
        "em", "font", "i", "ins", "kbd", "label", "mark", "q", "s", "samp", "small",
        "span", "strike", "strong", "sub", "sup", "time", "tt", "u", "var", "wbr",
    }
)
SLUG_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_-]*$"

# Class names that mark a code region without naming its dialect
NON_LANGUAGE_CLASSES = {"hljs", "highlight", "code", "nohighlight", "source"}


class ArticleLoadError(Exception):
    """Exception raised when an article source cannot produce a document."""

    pass


def slugify(value: str, default: str = "article") -> str:
    """Lowercase, hyphen-separated slug for a title."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or default


class ArticleValidator:
    """Structural article validation using Cerberus schemas."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="validator")  # structlog.BoundLoggerBase
        self._setup_schemas()

    def _setup_schemas(self) -> None:
        """Setup validation schemas."""
        self.block_schema = {
            "type": {"type": "string", "required": True, "allowed": [b.value for b in BlockType]},
            "text": {"type": "string"},
            "html": {"type": "string", "nullable": True},
            "level": {"type": "integer", "min": 1, "max": 6, "nullable": True},
            "src": {"type": "string", "nullable": True},
            "alt": {"type": "string", "nullable": True},
            "language": {"type": "string", "nullable": True},
        }

        self.document_schema: Dict[str, Any] = {
            "slug": {"type": "string", "required": True, "empty": False, "regex": SLUG_PATTERN},
            "title": {"type": "string", "required": True},
            "nav_href": {"type": "string", "empty": False},
            "nav_label": {"type": "string"},
            "blocks": {
                "type": "list",
                "required": True,
                "schema": {"type": "dict", "schema": self.block_schema},
            },
            "stylesheets": {"type": "list", "schema": {"type": "string"}},
            "scripts": {"type": "list", "schema": {"type": "string"}},
            "css": {"type": "string"},
        }

    def validate_document(self, data: Dict[str, Any]) -> tuple[bool, List[str], List[str]]:
        """
        Validate extracted article structure.

        Args:
            data: Article data to validate

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        validator = Validator(self.document_schema)  # type: ignore[misc]
        validator.allow_unknown = True  # Allow extra manifest fields  # type: ignore[attr-defined]

        is_valid = validator.validate(data)  # type: ignore[misc]
        errors: List[str] = []
        warnings: List[str] = []

        if not is_valid:
            errors.extend(self._format_validation_errors(validator.errors))  # type: ignore[attr-defined]

        custom_errors, custom_warnings = self._perform_custom_validations(data)
        errors.extend(custom_errors)
        warnings.extend(custom_warnings)

        return bool(is_valid) and len(custom_errors) == 0, errors, warnings

    def _format_validation_errors(self, errors: Any, path: str = "") -> List[str]:
        """Format Cerberus validation errors into readable messages."""
        formatted_errors: List[str] = []

        for field, error_info in errors.items():
            current_path = f"{path}.{field}" if path else str(field)

            if isinstance(error_info, list):
                for error in error_info:
                    if isinstance(error, dict):
                        formatted_errors.extend(self._format_validation_errors(error, current_path))
                    else:
                        formatted_errors.append(f"{current_path}: {error}")
            elif isinstance(error_info, dict):
                formatted_errors.extend(self._format_validation_errors(error_info, current_path))

        return formatted_errors

    def _perform_custom_validations(self, data: Dict[str, Any]) -> tuple[List[str], List[str]]:
        """Perform checks the schema cannot express."""
        errors: List[str] = []
        warnings: List[str] = []

        blocks = data.get("blocks")
        if not isinstance(blocks, list):
            return errors, warnings

        if not blocks:
            warnings.append("Article has no body blocks")

        image_sources: List[str] = []
        for i, block in enumerate(blocks):
            if not isinstance(block, dict):
                continue
            block_type = block.get("type")
            if block_type == BlockType.HEADING.value and block.get("level") is None:
                errors.append(f"blocks[{i}]: Heading block requires a 'level'")
            elif block_type == BlockType.IMAGE.value:
                if not block.get("src"):
                    errors.append(f"blocks[{i}]: Image block requires a 'src'")
                else:
                    image_sources.append(block["src"])
                if not block.get("alt"):
                    warnings.append(f"blocks[{i}]: Image block should have 'alt' text")
            elif block_type == BlockType.CODE.value and not block.get("language"):
                warnings.append(f"blocks[{i}]: Code block declares no language")

        slug = data.get("slug")
        if image_sources and isinstance(slug, str) and slug:
            warnings.extend(check_image_sequence(slug, image_sources))

        nav_href = data.get("nav_href")
        if nav_href is not None and nav_href != "index.html":
            warnings.append(f"Navigation link points to '{nav_href}' instead of 'index.html'")

        return errors, warnings


class BaseMarkupParser(ABC):
    """Abstract base class for article markup parsers."""

    source_format: SourceFormat

    def __init__(self) -> None:
        self.settings = get_settings()
        self.validator = ArticleValidator()

    @abstractmethod
    async def parse(self, content: str) -> LoadResult:
        """Parse markup content into an article document."""
        pass

    @abstractmethod
    async def validate_syntax(self, content: str) -> bool:
        """Validate markup syntax without full parsing."""
        pass

    def _build_result(self, raw_data: Dict[str, Any], start_time: float) -> LoadResult:
        """Validate extracted data and convert it to an ArticleDocument."""
        is_valid, errors, warnings = self.validator.validate_document(raw_data)

        if not is_valid:
            return LoadResult(
                success=False,
                document=None,
                source_format=self.source_format,
                errors=errors,
                warnings=warnings,
                processing_time=time.time() - start_time,
            )

        document = ArticleDocument(**raw_data)

        return LoadResult(
            success=True,
            document=document,
            source_format=self.source_format,
            errors=[],
            warnings=warnings,
            processing_time=time.time() - start_time,
        )

    def _failure(self, error_msg: str, start_time: float) -> LoadResult:
        return LoadResult(
            success=False,
            document=None,
            source_format=self.source_format,
            errors=[error_msg],
            processing_time=time.time() - start_time,
        )


class HTMLMarkupParser(BaseMarkupParser):
    """HTML page parser.

    Relies on the lenient ``html.parser`` tree builder, so malformed markup is
    recovered rather than rejected.
    """

    source_format = SourceFormat.HTML

    def __init__(self) -> None:
        super().__init__()
        self.logger: Any = logger.bind(parser="html")  # structlog.BoundLoggerBase

    async def parse(self, content: str) -> LoadResult:
        """
        Parse HTML content into an ArticleDocument.

        Args:
            content: Raw HTML source

        Returns:
            LoadResult containing the loaded document or errors
        """
        start_time = time.time()

        try:
            self.logger.info("Parsing HTML article source")
            soup = BeautifulSoup(content, "html.parser")
            raw_data = self._extract(soup)
            return self._build_result(raw_data, start_time)

        except Exception as e:
            error_msg = f"Unexpected parsing error: {e}"
            self.logger.error("Parsing failed", error=error_msg)
            return self._failure(error_msg, start_time)

    async def validate_syntax(self, content: str) -> bool:
        """
        Check that content carries at least one HTML element.

        Args:
            content: Raw HTML source

        Returns:
            True if the source contains markup, False otherwise
        """
        soup = BeautifulSoup(content, "html.parser")
        return soup.find(True) is not None

    def _extract(self, soup: BeautifulSoup) -> Dict[str, Any]:
        """Extract article data from a parsed HTML tree."""
        title = self._extract_title(soup)
        nav_anchor = self._find_nav_anchor(soup)
        if soup.find(True) is None:
            blocks = self._degraded_blocks(soup.get_text())
        else:
            blocks = self._extract_blocks(soup, nav_anchor)

        # The page header renders the title, drop a leading duplicate heading
        for i, block in enumerate(blocks):
            if block["type"] == BlockType.HEADING.value:
                if block["text"] == title:
                    del blocks[i]
                break

        image_sources = [b["src"] for b in blocks if b["type"] == BlockType.IMAGE.value]
        slug_meta = soup.find("meta", attrs={"name": "slug"})
        slug = (
            self._meta_slug(slug_meta.get("content") if isinstance(slug_meta, Tag) else None)
            or slug_from_images(image_sources)
            or slugify(title)
        )

        stylesheets = [
            link["href"] for link in soup.find_all("link", rel="stylesheet", href=True)
        ]
        scripts = [script["src"] for script in soup.find_all("script", src=True)]
        css = "\n".join(style.get_text() for style in soup.find_all("style")).strip()

        raw_data: Dict[str, Any] = {
            "slug": slug,
            "title": title,
            "nav_href": nav_anchor["href"] if nav_anchor else self.settings.nav_href,
            "nav_label": (
                nav_anchor.get_text(strip=True) if nav_anchor else ""
            ) or self.settings.nav_label,
            "blocks": blocks,
            "stylesheets": stylesheets or list(self.settings.stylesheets),
            "scripts": scripts or list(self.settings.scripts),
            "css": css,
        }
        self.logger.debug(
            "Extracted article structure",
            slug=slug,
            blocks=len(blocks),
            images=len(image_sources),
        )
        return raw_data

    def _extract_title(self, soup: BeautifulSoup) -> str:
        if soup.title and soup.title.get_text(strip=True):
            return soup.title.get_text(strip=True)
        heading = soup.find("h1")
        if heading and heading.get_text(strip=True):
            return heading.get_text(strip=True)
        return "Untitled"

    def _find_nav_anchor(self, soup: BeautifulSoup) -> Optional[Tag]:
        """The first link in <nav>, else the first link preceding the first heading."""
        nav = soup.find("nav")
        if isinstance(nav, Tag):
            anchor = nav.find("a", href=True)
            if isinstance(anchor, Tag):
                return anchor

        heading = soup.find(HEADING_TAGS)
        if isinstance(heading, Tag):
            anchor = heading.find_previous("a", href=True)
            if isinstance(anchor, Tag):
                return anchor
        return None

    def _meta_slug(self, content: Any) -> Optional[str]:
        """A declared slug, normalized when it is not already URL-safe."""
        if not isinstance(content, str) or not content.strip():
            return None
        content = content.strip()
        if re.match(SLUG_PATTERN, content):
            return content
        return slugify(content, default="") or None

    def _extract_blocks(self, soup: BeautifulSoup, nav_anchor: Optional[Tag]) -> List[Dict[str, Any]]:
        root = soup.body or soup
        blocks: List[Dict[str, Any]] = []
        consumed: Set[int] = set()

        for node in root.descendants:
            if id(node) in consumed:
                continue
            if isinstance(node, Tag) and node.name in BLOCK_TAGS:
                block = self._element_block(node, nav_anchor)
            elif self._is_loose(node):
                run = self._loose_run(node)
                consumed.update(id(member) for member in run)
                block = self._loose_block(run, nav_anchor)
            else:
                continue
            if block is not None:
                blocks.append(block)

        return blocks

    def _element_block(self, element: Tag, nav_anchor: Optional[Tag]) -> Optional[Dict[str, Any]]:
        in_nav = element.find_parent("nav") is not None

        if element.name == "img":
            if in_nav and element.find_parent("a") is not None:
                return None
            if not element.get("src"):
                return None
            return {
                "type": BlockType.IMAGE.value,
                "text": "",
                "src": element["src"],
                "alt": element.get("alt", ""),
            }

        if self._is_nested(element):
            return None
        if (in_nav or self._holds(element, nav_anchor)) and self._is_link_only(element):
            return None

        if element.name == "pre":
            return self._code_block(element)
        if element.name in HEADING_TAGS:
            fragment = self._inline_fragment(element)
            text = " ".join(fragment.get_text().split())
            if not text:
                return None
            return {
                "type": BlockType.HEADING.value,
                "text": text,
                "html": self._inline_html(fragment),
                "level": int(element.name[1]),
            }
        return self._prose_block(element)

    def _holds(self, node: PageElement, nav_anchor: Optional[Tag]) -> bool:
        if nav_anchor is None:
            return False
        if node is nav_anchor:
            return True
        return isinstance(node, Tag) and any(d is nav_anchor for d in node.descendants)

    def _is_nested(self, element: Tag) -> bool:
        """Text blocks inside another text block are covered by their parent.

        Code regions are always kept: unclosed paragraphs in malformed pages
        would otherwise swallow them.
        """
        if element.name == "pre":
            return element.find_parent("pre") is not None
        stop_tags = ["p", "pre"] + HEADING_TAGS
        if element.name != "li":
            stop_tags.append("li")
        return element.find_parent(stop_tags) is not None

    def _is_loose(self, node: PageElement) -> bool:
        """Text or inline markup sitting directly in a container element.

        Such runs (text in a div, blockquote, table cell or the page body)
        are not covered by any text block and become paragraphs of their own.
        """
        if isinstance(node, Tag):
            if node.name not in PHRASING_TAGS or node.find(BLOCK_TAGS) is not None:
                return False
        elif not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
            return False

        parent = node.parent
        if parent is None or parent.name in PHRASING_TAGS or parent.name in BLOCK_TAGS:
            return False
        return node.find_parent(TEXT_BLOCK_TAGS + NON_CONTENT_TAGS) is None

    def _loose_run(self, node: PageElement) -> List[PageElement]:
        run = [node]
        sibling = node.next_sibling
        while sibling is not None and self._is_loose(sibling):
            run.append(sibling)
            sibling = sibling.next_sibling
        return run

    def _loose_block(
        self, run: List[PageElement], nav_anchor: Optional[Tag]
    ) -> Optional[Dict[str, Any]]:
        markup = "".join(
            member.output_ready() if isinstance(member, NavigableString) else str(member)
            for member in run
        )
        fragment = clean_fragment(BeautifulSoup(markup, "html.parser"))
        text = " ".join(fragment.get_text().split())
        if not text:
            return None

        in_nav = run[0].find_parent("nav") is not None
        holds_nav_anchor = any(self._holds(member, nav_anchor) for member in run)
        if (in_nav or holds_nav_anchor) and self._is_link_only(fragment):
            return None

        return {
            "type": BlockType.PARAGRAPH.value,
            "text": text,
            "html": self._inline_html(fragment),
        }

    def _is_link_only(self, element: Union[BeautifulSoup, Tag]) -> bool:
        """True when all visible text of an element sits inside links."""
        text = "".join(element.get_text().split())
        link_text = "".join(
            "".join(anchor.get_text().split()) for anchor in element.find_all("a")
        )
        return text == link_text

    def _inline_fragment(self, element: Tag) -> Tag:
        """Detached, sanitized copy of an element without nested media or lists."""
        fragment = copy.copy(element)
        for nested in fragment.find_all(["img", "ul", "ol", "pre"]):
            if not nested.decomposed:
                nested.decompose()
        clean_fragment(fragment)
        return fragment

    def _prose_block(self, element: Tag) -> Optional[Dict[str, Any]]:
        fragment = self._inline_fragment(element)
        text = " ".join(fragment.get_text().split())
        if not text:
            return None
        block_type = BlockType.LIST_ITEM if element.name == "li" else BlockType.PARAGRAPH
        return {
            "type": block_type.value,
            "text": text,
            "html": self._inline_html(fragment),
        }

    def _inline_html(self, fragment: Union[BeautifulSoup, Tag]) -> str:
        return "".join(str(child) for child in fragment.contents).strip()

    def _code_block(self, pre: Tag) -> Dict[str, Any]:
        code = pre.find("code")
        target = code if isinstance(code, Tag) else pre
        text = target.get_text().replace("\r\n", "\n").replace("\r", "\n")
        language = self._declared_language(target) or (
            self._declared_language(pre) if target is not pre else None
        )
        return {"type": BlockType.CODE.value, "text": text, "language": language}

    def _declared_language(self, element: Tag) -> Optional[str]:
        """Dialect from ``data-lang`` or ``language-*``/``lang-*``/bare class names."""
        if element.get("data-lang"):
            return str(element["data-lang"]).lower()
        classes = element.get("class") or []
        for class_name in classes:
            for prefix in ("language-", "lang-"):
                if class_name.startswith(prefix) and len(class_name) > len(prefix):
                    return class_name[len(prefix):].lower()
        for class_name in classes:
            if class_name.lower() not in NON_LANGUAGE_CLASSES:
                return class_name.lower()
        return None

    def _degraded_blocks(self, text: str) -> List[Dict[str, Any]]:
        """Raw text with no markup becomes one paragraph per blank-line separated chunk."""
        chunks = [" ".join(chunk.split()) for chunk in re.split(r"\n\s*\n", text)]
        return [{"type": BlockType.PARAGRAPH.value, "text": chunk} for chunk in chunks if chunk]


class YAMLMarkupParser(BaseMarkupParser):
    """YAML manifest parser implementation."""

    source_format = SourceFormat.YAML

    def __init__(self) -> None:
        super().__init__()
        self.logger: Any = logger.bind(parser="yaml")  # structlog.BoundLoggerBase

    async def parse(self, content: str) -> LoadResult:
        """
        Parse a YAML article manifest into an ArticleDocument.

        Args:
            content: Raw YAML source

        Returns:
            LoadResult containing the loaded document or errors
        """
        start_time = time.time()

        try:
            self.logger.info("Parsing YAML article manifest")
            raw_data = yaml.safe_load(content)

            if raw_data is None:
                return self._failure("Empty YAML document", start_time)

            if not isinstance(raw_data, dict):
                return self._failure(
                    f"YAML content must be a dictionary/object, got {type(raw_data).__name__}",
                    start_time,
                )

            return self._build_result(self._normalize(raw_data), start_time)

        except yaml.YAMLError as e:
            error_msg = f"Invalid YAML syntax: {e}"
            self.logger.error("YAML parsing failed", error=error_msg)
            return self._failure(error_msg, start_time)
        except Exception as e:
            error_msg = f"Unexpected parsing error: {e}"
            self.logger.error("Parsing failed", error=error_msg)
            return self._failure(error_msg, start_time)

    async def validate_syntax(self, content: str) -> bool:
        """
        Validate YAML syntax.

        Args:
            content: Raw YAML source

        Returns:
            True if syntax is valid, False otherwise
        """
        try:
            yaml.safe_load(content)
            return True
        except yaml.YAMLError:
            return False

    def _normalize(self, raw_data: Dict[str, Any]) -> Dict[str, Any]:
        """Map manifest keys onto the article document structure."""
        data = dict(raw_data)

        nav = data.pop("nav", None)
        if isinstance(nav, dict):
            data.setdefault("nav_href", nav.get("href", self.settings.nav_href))
            data.setdefault("nav_label", nav.get("label", self.settings.nav_label))
        elif isinstance(nav, str):
            data.setdefault("nav_href", nav)
        data.setdefault("nav_href", self.settings.nav_href)
        data.setdefault("nav_label", self.settings.nav_label)

        if "slug" not in data and isinstance(data.get("title"), str):
            data["slug"] = slugify(data["title"])

        data.setdefault("stylesheets", list(self.settings.stylesheets))
        data.setdefault("scripts", list(self.settings.scripts))

        blocks = data.get("blocks")
        if isinstance(blocks, list):
            normalized: List[Any] = []
            for block in blocks:
                if isinstance(block, dict):
                    block = {key: value for key, value in block.items() if value is not None}
                    if block.get("type") == BlockType.CODE.value and isinstance(block.get("text"), str):
                        block["text"] = block["text"].replace("\r\n", "\n")
                    if isinstance(block.get("html"), str):
                        block["html"] = sanitize_inline(block["html"])
                normalized.append(block)
            data["blocks"] = normalized

        return data


class MarkupParserFactory:
    """Factory for creating markup parsers based on source format."""

    _parsers = {
        SourceFormat.HTML.value: HTMLMarkupParser,
        SourceFormat.YAML.value: YAMLMarkupParser,
    }

    @classmethod
    def create_parser(cls, parser_type: str) -> BaseMarkupParser:
        """
        Create a markup parser instance.

        Args:
            parser_type: Type of parser ("html", "yaml")

        Returns:
            Markup parser instance

        Raises:
            ValueError: If parser type is not supported
        """
        if parser_type not in cls._parsers:
            raise ValueError(f"Unsupported parser type: {parser_type}")

        return cls._parsers[parser_type]()

    @classmethod
    def detect_parser_type(cls, content: str) -> str:
        """
        Detect source format from content.

        Args:
            content: Raw article source

        Returns:
            Detected parser type
        """
        content = content.strip()
        if content.startswith("<"):
            return SourceFormat.HTML.value
        if content.startswith("---"):
            return SourceFormat.YAML.value

        try:
            if isinstance(yaml.safe_load(content), dict):
                return SourceFormat.YAML.value
        except yaml.YAMLError:
            pass
        return SourceFormat.HTML.value


async def parse_markup(content: str, parser_type: Optional[str] = None) -> LoadResult:
    """
    Parse article markup using the appropriate parser.

    Args:
        content: Raw article source
        parser_type: Optional parser type override

    Returns:
        LoadResult containing the loaded document or errors
    """
    if not content or not content.strip():
        return LoadResult(
            success=False, document=None, errors=["Empty article source provided"], processing_time=0.0
        )

    if not parser_type:
        parser_type = MarkupParserFactory.detect_parser_type(content)

    try:
        parser = MarkupParserFactory.create_parser(parser_type)
        return await parser.parse(content)
    except ValueError as e:
        return LoadResult(success=False, document=None, errors=[str(e)], processing_time=0.0)


async def validate_markup_syntax(content: str, parser_type: Optional[str] = None) -> bool:
    """
    Validate article syntax without full parsing.

    Args:
        content: Raw article source
        parser_type: Optional parser type override

    Returns:
        True if syntax is valid, False otherwise
    """
    if not content or not content.strip():
        return False

    if not parser_type:
        parser_type = MarkupParserFactory.detect_parser_type(content)

    try:
        parser = MarkupParserFactory.create_parser(parser_type)
        return await parser.validate_syntax(content)
    except ValueError:
        return False


def get_supported_block_types() -> List[str]:
    """
    Get list of supported article block types.

    Returns:
        List of supported block type strings
    """
    return [b.value for b in BlockType]
