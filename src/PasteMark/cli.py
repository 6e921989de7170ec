from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from .config import DEFAULT_CONFIG, load_config
from .pipeline import render_markdown, render_markdown_async
from .utils import configure_logging, read_markdown, resolve_output_path, wrap_page


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pastemark",
        description="Render a markdown paste into a standalone HTML page.",
    )
    parser.add_argument("input", type=str, help="Path to Markdown file")
    parser.add_argument("-o", "--output", type=str, help="Output HTML path")
    parser.add_argument("--config", type=str, help="YAML file with render options")
    parser.add_argument(
        "--diagrams",
        action="store_true",
        help="Render mermaid diagrams to SVG with mermaid-cli instead of leaving them to the browser",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    output_path = resolve_output_path(input_path, args.output)
    config = load_config(args.config) if args.config else DEFAULT_CONFIG

    logging.info("Reading %s", input_path)
    markdown_text = read_markdown(input_path)
    logging.debug("Markdown length: %d chars", len(markdown_text))

    logging.info("Rendering markdown...")
    if args.diagrams:
        rendered = asyncio.run(render_markdown_async(markdown_text, config))
    else:
        rendered = render_markdown(markdown_text, config)

    title = str(rendered.metadata.get("title") or input_path.stem)
    logging.info("Writing HTML to %s", output_path)
    output_path.write_text(wrap_page(rendered.html, title, config), encoding="utf-8")

    logging.info("Done. Saved to %s", output_path)


if __name__ == "__main__":
    main()
