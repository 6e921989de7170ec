"""Class names and inline styles for every rendered element kind."""

from __future__ import annotations

import re

PARAGRAPH = "my-2"
PARAGRAPH_RIGHT = "my-2 text-right"
PARAGRAPH_CENTER = "my-2 text-center"

INLINE_CODE = "text-pink-600 dark:text-pink-400 bg-gray-100 dark:bg-gray-800 px-1 py-0.5 rounded"
CODE_BLOCK = "hljs"
HIGHLIGHT_CSS_CLASS = "highlight"

IMAGE = "max-w-full h-auto inline-block rounded"
IMAGE_CENTER = "max-w-full h-auto rounded block mx-auto"

TABLE_WRAPPER = "overflow-x-auto my-4"
TABLE = "min-w-full border-collapse"

TASK_CHECKBOX = "mr-2 align-middle cursor-default"

BLOCKQUOTE = "border-l-4 border-gray-300 dark:border-gray-600 pl-4 italic text-gray-600 dark:text-gray-400 my-4"
MARK = "bg-yellow-300 dark:bg-yellow-500 text-black dark:text-gray-900 px-1 rounded"
KBD = (
    "px-2 py-1 text-sm font-mono bg-gray-100 dark:bg-gray-800 border border-gray-300 "
    "dark:border-gray-600 rounded-md shadow-sm"
)
SUB = "text-xs"
SUP = "text-xs"
DL = "my-4"
DT = "font-semibold mt-2"
DD = "ml-6 text-gray-700 dark:text-gray-300"
SPOILER = "spoiler bg-gray-800 text-gray-800 hover:text-white dark:bg-gray-200 dark:text-gray-200 rounded px-1"
ABBR = "border-b border-dotted border-gray-500 cursor-help"
DETAILS = "my-4 p-4 bg-gray-100 dark:bg-gray-800 rounded-lg"
SUMMARY = "cursor-pointer font-semibold hover:text-blue-600 dark:hover:text-blue-400"
UNDERLINE = "underline"

ADMONITION_BASE = "my-4 p-4 rounded-md border-l-4"
ADMONITION_TITLE = "admonition-title font-semibold mb-2"
ADMONITION_COLORS = {
    "note": "border-blue-500 bg-blue-50 dark:bg-blue-900/20",
    "tip": "border-green-500 bg-green-50 dark:bg-green-900/20",
    "info": "border-cyan-500 bg-cyan-50 dark:bg-cyan-900/20",
    "warning": "border-yellow-500 bg-yellow-50 dark:bg-yellow-900/20",
    "danger": "border-red-500 bg-red-50 dark:bg-red-900/20",
    "important": "border-purple-500 bg-purple-50 dark:bg-purple-900/20",
    "caution": "border-orange-500 bg-orange-50 dark:bg-orange-900/20",
}
DEFAULT_ADMONITION = "note"

CONTAINER = "my-4 p-4 bg-gray-100 dark:bg-gray-800 rounded-lg border border-gray-300 dark:border-gray-600"

TOC_NAV = "table-of-contents my-4 p-4 bg-gray-100 dark:bg-gray-800 rounded-lg"
TOC_TITLE = "text-xl font-bold mb-2"
TOC_LIST = "space-y-1"
TOC_NESTED_LIST = "space-y-1 ml-4"
TOC_LINK = "text-blue-600 dark:text-blue-400 hover:underline"

FOOTNOTES = "footnotes mt-8 text-sm"

COLOR_PATTERN = re.compile(r"^(?:#[0-9A-Fa-f]{3,8}|[A-Za-z]+)$")
WIDTH_PATTERN = re.compile(r"^\d+(?:\.\d+)?(?:px|%|em|rem|vw)?$")


def admonition_classes(kind: str | None) -> str:
    """Classes for an admonition; unknown kinds use the default colours."""
    name = kind if kind in ADMONITION_COLORS else DEFAULT_ADMONITION
    return f"admonition admonition-{name} {name} {ADMONITION_BASE} {ADMONITION_COLORS[name]}"


def color_style(color: str) -> str | None:
    if not COLOR_PATTERN.match(color):
        return None
    return f"color: {color}"


def width_style(width: str | int | None) -> str | None:
    if width is None:
        return None
    value = str(width).strip()
    if not WIDTH_PATTERN.match(value):
        return None
    if value[-1].isdigit():
        value += "%"
    return f"width: {value};"
