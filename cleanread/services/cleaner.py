"""Post-render text cleanup for Markdown output."""

import re

# Cloudflare email obfuscation placeholder, in its raw, nbsp and entity forms
_EMAIL_PROTECTED_RE = re.compile(
    r"\[email(?:\s|&nbsp;|&#160;)*protected\]", re.IGNORECASE
)

_TEL_URI_RE = re.compile(r"\btel:\S+", re.IGNORECASE)

# Numeric HTML entities that survived conversion (decimal and hex)
_NUMERIC_ENTITY_RE = re.compile(r"&#x?[0-9a-f]+;", re.IGNORECASE)

# A sentence (up to a full stop or line break) that talks about cookie consent
_COOKIE_SENTENCE_RE = re.compile(
    r"[^.\n]*\b(?:uses? cookies|accept (?:all )?cookies|cookie (?:policy|settings|preferences))\b[^.\n]*\.?",
    re.IGNORECASE,
)

_EMPTY_LINK_RE = re.compile(r"\[\s*\]\([^)]*\)")

_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")

_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")


def clean_markdown(text: str) -> str:
    """Remove rendering noise from Markdown produced by markdownify."""
    if not text:
        return text

    text = _EMAIL_PROTECTED_RE.sub("", text)
    text = _TEL_URI_RE.sub("", text)
    text = _NUMERIC_ENTITY_RE.sub("", text)
    text = _COOKIE_SENTENCE_RE.sub("", text)
    text = _EMPTY_LINK_RE.sub("", text)
    text = _TRAILING_SPACE_RE.sub("\n", text)
    text = _EXCESS_BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()
