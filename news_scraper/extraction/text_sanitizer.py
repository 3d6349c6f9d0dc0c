"""HTML and text sanitization for extracted article content."""

import logging
import re
from typing import List, Optional, Pattern, Sequence, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString
from bs4.formatter import HTMLFormatter

from . import sanitizer_rules
from .sanitizer_rules import SanitizerRule

logger = logging.getLogger(__name__)

SCRIPT_OPENER = re.compile(r'<(?=\s*/?\s*script)', re.IGNORECASE)
HORIZONTAL_WHITESPACE = re.compile(r'[^\S\n]+')
NEWLINE_RUNS = re.compile(r'\s*\n\s*')
WORD_CHARACTER = re.compile(r'\w')

# Containers never removed by the script-marker pass
PROTECTED_TAGS = {'html', 'body', '[document]'}

# Serialization that never grows clean markup; only angle brackets are escaped
COMPACT_FORMATTER = HTMLFormatter(
    entity_substitution=lambda s: s.replace("<", "&lt;").replace(">", "&gt;"),
    void_element_close_prefix=None,
    empty_attributes_are_booleans=True,
)


class TextSanitizer:
    """
    Aggressive cleanup of page HTML before extraction and of extracted text after it.

    Both entry points are total: on unexpected input they degrade to the
    regex-only result instead of raising.
    """

    def __init__(
        self,
        denylist: Optional[Sequence[str]] = None,
        script_markers: Optional[Sequence[Pattern]] = None,
        text_rule_groups: Optional[Sequence[Tuple[str, List[SanitizerRule]]]] = None,
    ):
        self.denylist = list(denylist if denylist is not None else sanitizer_rules.HTML_DENYLIST_SELECTORS)
        self.script_markers = list(script_markers if script_markers is not None else sanitizer_rules.SCRIPT_TEXT_MARKERS)
        self.text_rule_groups = list(text_rule_groups if text_rule_groups is not None else sanitizer_rules.TEXT_RULE_GROUPS)

    # ------------------------------------------------------------------ HTML

    def clean_html(self, html: str) -> str:
        """Strip scripts, styles, handlers, boilerplate containers and leaked script text."""
        if not html:
            return ""

        stripped = html
        for html_rule in sanitizer_rules.HTML_PRE_RULES:
            stripped = html_rule.apply(stripped)

        try:
            soup = BeautifulSoup(stripped, 'html.parser')
            self.clean_soup(soup)
            cleaned = soup.decode(formatter=COMPACT_FORMATTER)
        except Exception as e:
            logger.debug(f"HTML parse during cleaning failed, using regex result: {e}")
            cleaned = stripped

        # Quoting unquoted attributes can still grow the markup
        if len(cleaned) > len(html):
            cleaned = stripped

        return self._neutralize_script_openers(cleaned)

    def clean_soup(self, soup: BeautifulSoup) -> None:
        """In-place DOM cleanup shared by every extraction strategy."""
        for element in soup.find_all(['script', 'style', 'noscript']):
            element.decompose()

        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

        for selector in self.denylist:
            try:
                elements = soup.select(selector)
            except Exception:
                continue
            for element in elements:
                if not element.decomposed:
                    element.decompose()

        self._strip_handler_attributes(soup)
        self._remove_script_like_elements(soup)

    def _strip_handler_attributes(self, soup: BeautifulSoup) -> None:
        for element in soup.find_all(True):
            for attr in list(element.attrs):
                if attr.lower().startswith('on'):
                    del element.attrs[attr]
            href = element.get('href')
            if isinstance(href, str) and href.strip().lower().startswith('javascript:'):
                del element.attrs['href']

    def _remove_script_like_elements(self, soup: BeautifulSoup) -> None:
        flagged = []
        for text_node in soup.find_all(string=True):
            if not isinstance(text_node, NavigableString):
                continue
            if any(marker.search(text_node) for marker in self.script_markers):
                flagged.append(text_node)

        for text_node in flagged:
            parent = text_node.parent
            if parent is None or getattr(parent, 'decomposed', False):
                continue
            if parent.name in PROTECTED_TAGS:
                text_node.extract()
            else:
                parent.decompose()

    @staticmethod
    def _neutralize_script_openers(html: str) -> str:
        while SCRIPT_OPENER.search(html):
            html = SCRIPT_OPENER.sub('', html)
        return html

    # ------------------------------------------------------------------ text

    def clean_text(self, text: str) -> str:
        """
        Remove script residue, consent and ad boilerplate, then normalize whitespace.

        Applied until the output stops changing, so the result is a fixed
        point of this function and never longer than the input.
        """
        if not text:
            return ""

        # Every pass either shortens the text or only rewrites whitespace
        # characters to plain spaces, so this terminates.
        current = text
        while True:
            cleaned = self._clean_text_once(current)
            if cleaned == current:
                return current
            current = cleaned

    def _clean_text_once(self, text: str) -> str:
        for _, rules in self.text_rule_groups:
            for text_rule in rules:
                text = text_rule.apply(text)
        return self._normalize_lines(text)

    @staticmethod
    def _normalize_lines(text: str) -> str:
        text = HORIZONTAL_WHITESPACE.sub(' ', text)
        text = NEWLINE_RUNS.sub('\n', text).strip()
        lines = [line.strip() for line in text.split('\n')]
        return '\n'.join(line for line in lines if line and WORD_CHARACTER.search(line))

    @staticmethod
    def normalize_whitespace(text: Optional[str]) -> str:
        """Collapse all whitespace to single spaces (titles, bylines, descriptions)."""
        if not text:
            return ""
        return re.sub(r'\s+', ' ', text).strip()
