from __future__ import annotations

import logging
from html import escape
from pathlib import Path
from typing import Optional

from .config import DEFAULT_CONFIG, RenderConfig
from .renderer_html import make_formatter
from .styles import HIGHLIGHT_CSS_CLASS


def configure_logging(verbose: bool = False) -> None:
    """Configure a simple console logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )


def resolve_output_path(input_path: Path, output: Optional[str]) -> Path:
    if output:
        out_path = Path(output)
        if out_path.is_dir():
            out_path = out_path / f"{input_path.stem}.html"
        return out_path
    return input_path.with_suffix(".html")


def read_markdown(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def wrap_page(body: str, title: str, config: RenderConfig = DEFAULT_CONFIG) -> str:
    """Embed rendered paste HTML in a standalone page with the code highlight CSS."""
    css = make_formatter(config.pygments_style).get_style_defs(f".{HIGHLIGHT_CSS_CLASS}")
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="utf-8" />\n'
        f"<title>{escape(title)}</title>\n"
        f"<style>\n{css}\n</style>\n"
        "</head>\n<body>\n"
        f"{body}\n"
        "</body>\n</html>\n"
    )
