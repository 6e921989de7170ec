"""Float, size and alignment directives for images.

Markers can sit in the alt text (``![Alt#left#100x50](src)``), in a size
suffix right after the image (``![Alt](src){100px:75px}``) or in the URL
fragment (``![Alt](src#right)``). They are stripped from what is displayed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .model import Image

ALT_POSITION_PATTERN = re.compile(r"#(left|right|center)(?![\w-])")
ALT_SIZE_PATTERN = re.compile(r"#(\d+)x(\d+)(?![\w-])")
ALT_MARKER_PATTERN = re.compile(r"#(?:left|right|center|\d+x\d+)(?![\w-])")
SRC_POSITION_PATTERN = re.compile(r"#(left|right|center)$")
SIZE_SUFFIX_PATTERN = re.compile(r"^\{(\d+(?:\.\d+)?)(px|%|vw|vh)?:(\d+(?:\.\d+)?)(px|%|vw|vh)?\}")


@dataclass(frozen=True)
class ImageDirective:
    src: str
    alt: str
    float: str | None = None
    align: str | None = None
    width: str | None = None
    height: str | None = None

    def style(self) -> str:
        rules: list[str] = []
        if self.float == "left":
            rules += ["float: left", "margin-right: 1em", "margin-bottom: 0.5em"]
        elif self.float == "right":
            rules += ["float: right", "margin-left: 1em", "margin-bottom: 0.5em"]
        if self.width:
            rules.append(f"width: {self.width}")
        if self.height:
            rules.append(f"height: {self.height}")
        return "; ".join(rules)


def split_size_suffix(text: str) -> tuple[tuple[str, str] | None, str]:
    """Split a leading ``{W:H}`` suffix off ``text``; bare numbers are pixels."""
    match = SIZE_SUFFIX_PATTERN.match(text)
    if not match:
        return None, text
    width = f"{match.group(1)}{match.group(2) or 'px'}"
    height = f"{match.group(3)}{match.group(4) or 'px'}"
    return (width, height), text[match.end() :]


def parse_image_directive(image: Image, size: tuple[str, str] | None = None) -> ImageDirective:
    alt = image.alt or ""
    src = image.src
    position = None

    markers = set(ALT_POSITION_PATTERN.findall(alt))
    for candidate in ("left", "right", "center"):
        if candidate in markers:
            position = candidate
            break
    src_match = SRC_POSITION_PATTERN.search(src)
    if src_match:
        src = src[: src_match.start()]
        position = position or src_match.group(1)

    width = height = None
    size_match = ALT_SIZE_PATTERN.search(alt)
    if size_match:
        width, height = f"{size_match.group(1)}px", f"{size_match.group(2)}px"
    if size is not None:
        width, height = size

    clean_alt = ALT_MARKER_PATTERN.sub("", alt).strip()
    return ImageDirective(
        src=src,
        alt=clean_alt,
        float=position if position in ("left", "right") else None,
        align="center" if position == "center" else None,
        width=width,
        height=height,
    )
