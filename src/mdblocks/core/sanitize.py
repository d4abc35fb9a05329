"""HTML sanitization against the editor allow-list

Security model:
- Elements that can execute or load content are removed with everything
  inside them, at any depth.
- bleach enforces the tag/attribute allow-list: unknown tags are unwrapped,
  unknown attributes (including every on* handler) dropped, and URLs outside
  http/https/mailto removed.

Both happen in one bleach parse so attribute values (block data-json in
particular) are serialized exactly once.
"""

from bleach import html5lib_shim
from bleach.sanitizer import Cleaner


ALLOWED_TAGS = frozenset({
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "hr", "strong", "em", "code", "pre",
    "ul", "ol", "li", "blockquote",
    "table", "thead", "tbody", "tr", "th", "td",
    "div", "span", "a", "img",
})

GLOBAL_ATTRIBUTES = ["data-block-type", "data-json", "contenteditable", "class"]

ALLOWED_ATTRIBUTES = {
    "*": GLOBAL_ATTRIBUTES,
    "a": ["href", "title"],
    "img": ["src", "alt", "title", "width", "height"],
    "th": ["scope"],
    "td": ["colspan", "rowspan"],
}

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})

# Removed together with their content
STRIPPED_TAGS = frozenset({"script", "iframe", "object", "embed", "form", "meta", "style"})


class DropSubtreesFilter(html5lib_shim.Filter):
    """Drop STRIPPED_TAGS elements and every token inside them."""

    def __iter__(self):
        depth = 0
        for token in super().__iter__():
            kind, name = token["type"], token.get("name")
            if name in STRIPPED_TAGS:
                if kind == "StartTag":
                    depth += 1
                elif kind == "EndTag" and depth:
                    depth -= 1
                continue
            if not depth:
                yield token


# STRIPPED_TAGS pass the allow-list only so DropSubtreesFilter can remove them whole
_cleaner = Cleaner(
    tags=ALLOWED_TAGS | STRIPPED_TAGS,
    attributes=ALLOWED_ATTRIBUTES,
    protocols=ALLOWED_PROTOCOLS,
    strip=True,
    strip_comments=True,
    filters=[DropSubtreesFilter],
)


def sanitize_html(html: str) -> str:
    """Return html reduced to the allow-list."""
    return _cleaner.clean(html)
