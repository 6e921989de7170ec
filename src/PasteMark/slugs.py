from __future__ import annotations

import re

STRIP_PATTERN = re.compile(r"[^\w\- ]")


class Slugger:
    """GitHub-style heading ids, unique within one document.

    The first heading with a given slug keeps it; later ones get ``-1``,
    ``-2``, ... appended.
    """

    def __init__(self) -> None:
        self._occurrences: dict[str, int] = {}

    def slug(self, text: str) -> str:
        base = STRIP_PATTERN.sub("", text.strip().lower()).replace(" ", "-") or "section"
        result = base
        while result in self._occurrences:
            self._occurrences[base] += 1
            result = f"{base}-{self._occurrences[base]}"
        self._occurrences[result] = 0
        return result
