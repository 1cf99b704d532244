"""
Markup stripping for user supplied text.

Applied to every free-text field before it is persisted and again when it is
rendered into a response, so rows written before a fix (or by another
client) never reach the browser with live markup.

Only things that look like markup are removed. A bare "<" in ordinary text
("n<m", "if i<j then") is left alone, and text is never shortened here;
length limits belong to the request schemas.
"""
import re
from typing import Optional

# Elements a browser would act on even without a closing ">".
_ACTIVE_ELEMENTS = (
    "script|style|iframe|frame|frameset|object|embed|applet|img|image|svg|math|"
    "link|meta|base|form|input|button|textarea|select|video|audio|source|track|"
    "body|html|head|title|noscript|template|marquee|details|div|span|table|xmp"
)

# Elements whose content is never meaningful text.
_BLOCK_ELEMENTS = re.compile(
    r"<\s*(script|style|iframe|object|embed|noscript|template)\b[^>]*>.*?<\s*/\s*\1\s*>",
    flags=re.IGNORECASE | re.DOTALL,
)
_COMMENTS = re.compile(r"<!--.*?(-->|$)", flags=re.DOTALL)
_TAGS = re.compile(
    r"<[!?][^<>]*>"                                      # doctype, processing instruction
    r"|</?(?:" + _ACTIVE_ELEMENTS + r")(?=[\s/>])[^>]*>"  # active element, any attributes
    r"|</?[a-zA-Z][\w:-]*\s*/?>"                         # any bare tag: <foo>, </foo>
    r"|<[a-zA-Z][\w:-]*\s[^<>]*=[^<>]*>",                # any tag carrying attributes
    flags=re.IGNORECASE,
)
# An active element that opens but never closes ("<script src=...", "<img").
_DANGLING_TAG = re.compile(
    r"</?(?:" + _ACTIVE_ELEMENTS + r")(?:[\s/][^<>]*)?$",
    flags=re.IGNORECASE,
)
_NULLS = re.compile(r"\x00")


def strip_markup(text: Optional[str]) -> Optional[str]:
    """
    Remove HTML tags from text.

    None passes through unchanged so optional fields stay optional. The result
    is stripped of surrounding whitespace.
    """
    if text is None:
        return None
    if not isinstance(text, str):
        text = str(text)

    text = _NULLS.sub("", text)
    text = _COMMENTS.sub("", text)
    # Repeat until stable so nested fragments like "<scr<b>ipt>" cannot
    # reassemble into a tag once the inner one is removed.
    previous = None
    while previous != text:
        previous = text
        text = _BLOCK_ELEMENTS.sub("", text)
        text = _TAGS.sub("", text)
        text = _DANGLING_TAG.sub("", text)

    return text.strip()
