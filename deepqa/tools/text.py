"""Text processing utilities: normalization, markup trimming, counting."""
import html
import re

# [[target|label]] -> label, [[target]] -> target
_WIKI_LINK = re.compile(r'\[\[(?:[^\]|]*\|)?([^\]]*)\]\]')
_WIKI_TEMPLATE = re.compile(r'\{\{[^{}]*\}\}')
_WIKI_EMPHASIS = re.compile(r"'{2,}")
_HTML_TAG = re.compile(r'<[^>]+>')
_PUNCTUATION = re.compile(r'[^\w\s]', re.UNICODE)
_WHITESPACE = re.compile(r'\s+')
_PARENTHETICAL = re.compile(r'\s*\([^()]*\)\s*$')


def normalize_text(text: str) -> str:
    """Canonical form used to compare candidate answers.

    Case-folded, punctuation replaced by spaces, whitespace collapsed.
    """
    if not text:
        return ""
    text = _PUNCTUATION.sub(' ', text.casefold())
    return _WHITESPACE.sub(' ', text).strip()


def strip_markup(text: str) -> str:
    """Remove MediaWiki markup and HTML tags, keeping the visible text."""
    if not text:
        return ""
    text = _WIKI_TEMPLATE.sub('', text)
    text = _WIKI_LINK.sub(r'\1', text)
    text = _WIKI_EMPHASIS.sub('', text)
    text = _HTML_TAG.sub('', text)
    text = html.unescape(text)
    return _WHITESPACE.sub(' ', text).strip()


def strip_qualifiers(text: str) -> str:
    """Drop disambiguating qualifiers from a title.

    "Paris, France" -> "Paris", "Mercury (planet)" -> "Mercury".
    A title that would become empty is returned unchanged.
    """
    if not text:
        return ""
    trimmed = _PARENTHETICAL.sub('', text)
    trimmed = trimmed.split(',', 1)[0].strip()
    return trimmed or text.strip()
