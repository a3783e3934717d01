"""Output formatters: render the chosen content node as text."""

import re
from typing import List

from bs4 import Tag
from markdownify import markdownify

from cleanread.services.cleaner import clean_markdown

_WHITESPACE_RE = re.compile(r"\s+")

_BLOCK_TAGS = {"p", "pre", "blockquote", "li", "td", "h1", "h2", "h3", "h4", "h5", "h6"}


def _outermost_blocks(node: Tag) -> List[Tag]:
    """Block elements under *node* that are not nested in another block under *node*."""
    blocks: List[Tag] = []
    for block in node.find_all(list(_BLOCK_TAGS)):
        ancestor = block.parent
        while ancestor is not None and ancestor is not node:
            if ancestor.name in _BLOCK_TAGS:
                break
            ancestor = ancestor.parent
        else:
            blocks.append(block)
    return blocks


class TextOutputFormatter:
    """Plain text, one paragraph per block element, blank line between blocks."""

    def get_formatted_text(self, node: Tag) -> str:
        blocks = _outermost_blocks(node) or [node]

        paragraphs = []
        for block in blocks:
            if block.name == "pre":
                text = block.get_text().strip()
            else:
                text = _WHITESPACE_RE.sub(" ", block.get_text()).strip()
            if text:
                paragraphs.append(text)
        return "\n\n".join(paragraphs)


class MarkdownOutputFormatter:
    """Markdown via markdownify, followed by the usual noise cleanup."""

    def get_formatted_text(self, node: Tag) -> str:
        return clean_markdown(markdownify(str(node), heading_style="ATX").strip())
