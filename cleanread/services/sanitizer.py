import re

from bs4 import BeautifulSoup, Comment, Tag

from cleanread.models.article import Article

# Matches `display:none` or `visibility:hidden` in inline style attributes
_HIDDEN_STYLE_RE = re.compile(
    r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.IGNORECASE
)

# Tags whose entire subtree should be removed (non-content / scripting).
# Embeds (iframe, object, embed, video) are kept for video discovery.
_REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "applet",
    "link",
    "meta",
    # Vector / canvas graphics produce raw coordinate/path noise in plain text
    "svg",
    "canvas",
    # Template elements may contain raw JS template markup
    "template",
    # Structural chrome that never carries article text
    "nav",
    "aside",
    "form",
    "button",
    "input",
    "select",
    "textarea",
}

# Site-level chrome, only removed when it is not inside an <article>/<main>
_PAGE_CHROME_TAGS = {"header", "footer"}

# HTML attributes that contain CSS or JavaScript and should be stripped
# from every element that survives the tree pruning step.
_JUNK_ATTRS = re.compile(
    r"^(style|on\w+)$", re.IGNORECASE
)

# CSS classes / ids that strongly indicate non-content elements.
# Single words match a whole class token ("ads" matches "top-ads" but not
# "uploads"); hyphenated entries match anywhere in the attribute value.
_NOISE_KEYWORDS = {
    "nav",
    "navbar",
    "navigation",
    "menu",
    "menucontainer",
    "sidebar",
    "side-bar",
    "banner",
    "popup",
    "modal",
    "cookie",
    "gdpr",
    "ads",
    "advert",
    "advertisement",
    "sponsor",
    "tracking",
    "footer",
    "footnote",
    "breadcrumb",
    "breadcrumbs",
    "pagination",
    "social",
    "socialnetworking",
    "share",
    "sharing",
    "retweet",
    "related",
    "recommend",
    "subscribe",
    "newsletter",
    "promo",
    "overlay",
    "shoutbox",
    "pagetools",
    "vcard",
    "comment",
    "comments",
    "widget",
    "author-info",
    "author-bio",
    "author-box",
    "post-meta",
    "entry-meta",
    "site-branding",
    "site-footer",
    "site-header",
    "search-form",
    "inline-share-tools",
}

_TOKEN_SPLIT_RE = re.compile(r"[-_\s]+")

# Tags that keep a <div> a container; a div without any of them is a paragraph
_BLOCK_TAGS = ["a", "blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"]

_PROTECTED_TAGS = {"html", "body"}


def _has_noise_attr(tag: Tag) -> bool:
    """Return True when a tag's id or class suggests it is non-content."""
    if not tag.attrs:
        return False
    attrs_to_check = []
    if tag.get("id"):
        attrs_to_check.append(str(tag["id"]).lower())
    for cls in tag.get("class", []):
        attrs_to_check.append(cls.lower())

    for attr in attrs_to_check:
        tokens = set(_TOKEN_SPLIT_RE.split(attr))
        for keyword in _NOISE_KEYWORDS:
            if keyword in tokens or ("-" in keyword and keyword in attr):
                return True
    return False


def _is_page_chrome(tag: Tag) -> bool:
    """True for a header/footer that belongs to the page rather than the article."""
    return tag.name in _PAGE_CHROME_TAGS and tag.find_parent(["article", "main"]) is None


def _convert_divs_to_paragraphs(soup: BeautifulSoup) -> None:
    """Rename text-only <div> elements to <p> so paragraph scoring sees them."""
    for div in soup.find_all("div"):
        if div.decomposed:
            continue
        if div.find(_BLOCK_TAGS) is None and div.get_text(strip=True):
            div.name = "p"


def sanitize(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove noise elements from *soup* in place and return it."""
    # Remove tags that should never appear in clean output
    for tag in soup.find_all(_REMOVE_TAGS):
        tag.decompose()

    # Remove HTML comment nodes (may contain debugging info or conditional blocks)
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    # Remove elements whose class/id indicates noise (nav, ads, tracking, …)
    # Also remove elements hidden via inline CSS (display:none / visibility:hidden)
    for tag in soup.find_all(True):
        if not isinstance(tag, Tag) or tag.decomposed:
            continue
        if tag.name in _PROTECTED_TAGS:
            junk = [attr for attr in tag.attrs if _JUNK_ATTRS.match(attr)]
            for attr in junk:
                del tag[attr]
            continue
        if _has_noise_attr(tag) or _is_page_chrome(tag):
            tag.decompose()
            continue
        inline_style = tag.get("style", "")
        if inline_style and _HIDDEN_STYLE_RE.search(inline_style):
            tag.decompose()
            continue
        # Strip inline CSS and event-handler attributes so they cannot leak
        # into the rendered text.
        junk = [attr for attr in tag.attrs if _JUNK_ATTRS.match(attr)]
        for attr in junk:
            del tag[attr]

    _convert_divs_to_paragraphs(soup)
    return soup


class StandardDocumentCleaner:
    """Default document cleaner; prunes ``article.doc`` and leaves ``raw_doc`` alone."""

    def clean(self, article: Article) -> BeautifulSoup:
        return sanitize(article.doc)
