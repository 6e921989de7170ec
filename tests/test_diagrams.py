import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from PasteMark import diagrams
from PasteMark.diagrams import DiagramPass, MermaidCliEngine, get_diagram_engine, set_diagram_engine
from PasteMark.errors import DiagramError
from PasteMark.pipeline import render_markdown, render_markdown_async

MERMAID_MD = "# Flow\n\n[TOC]\n\n```mermaid\ngraph TD; A-->B\n```\n"
SVG = '<svg xmlns="http://www.w3.org/2000/svg"><g id="node"></g></svg>'


class FakeEngine:
    def __init__(self, svg: str = SVG):
        self.svg = svg
        self.sources = []

    async def render_diagram(self, source: str) -> str:
        self.sources.append(source)
        return self.svg


class FailingEngine:
    def __init__(self, error: Exception):
        self.error = error

    async def render_diagram(self, source: str) -> str:
        raise self.error


class GatedEngine:
    def __init__(self):
        self.release = asyncio.Event()

    async def render_diagram(self, source: str) -> str:
        await self.release.wait()
        return SVG


def test_diagram_pass_replaces_placeholder():
    engine = FakeEngine()
    rendered = asyncio.run(render_markdown_async(MERMAID_MD, engine=engine))
    assert engine.sources == ["graph TD; A-->B\n"]
    assert rendered.soup.find("div", class_="diagram-placeholder") is None
    diagram = rendered.soup.find("div", attrs={"data-diagram-id": "diagram-0"})
    assert diagram.find("svg") is not None
    assert rendered.soup.find("nav", class_="table-of-contents") is not None


def test_results_arriving_out_of_order_land_in_their_placeholders():
    class SlowFirstEngine:
        async def render_diagram(self, source: str) -> str:
            await asyncio.sleep(0.05 if "first" in source else 0)
            return f"<svg><text>{source.strip()}</text></svg>"

    md_text = "```mermaid\nfirst\n```\n\n```mermaid\nsecond\n```\n"
    rendered = asyncio.run(render_markdown_async(md_text, engine=SlowFirstEngine()))
    texts = {
        div["data-diagram-id"]: div.get_text()
        for div in rendered.soup.find_all("div", attrs={"data-diagram-id": True})
    }
    assert texts == {"diagram-0": "first", "diagram-1": "second"}


@pytest.mark.parametrize("error", [DiagramError("bad syntax"), RuntimeError("crashed")])
def test_engine_failure_keeps_placeholder(error):
    rendered = asyncio.run(render_markdown_async(MERMAID_MD, engine=FailingEngine(error)))
    placeholder = rendered.soup.find("div", class_="diagram-placeholder")
    assert placeholder is not None
    assert placeholder.get_text() == "graph TD; A-->B\n"


def test_superseded_document_drops_late_result():
    async def scenario():
        rendered = render_markdown(MERMAID_MD)
        engine = GatedEngine()
        tasks = DiagramPass(engine).schedule(rendered)
        rendered.supersede()
        engine.release.set()
        results = await asyncio.gather(*tasks)
        return rendered, results

    rendered, results = asyncio.run(scenario())
    assert results == [False]
    assert rendered.soup.find("div", class_="diagram-placeholder") is not None


def test_detached_placeholder_drops_late_result():
    async def scenario():
        rendered = render_markdown(MERMAID_MD)
        engine = GatedEngine()
        tasks = DiagramPass(engine).schedule(rendered)
        rendered.soup.find("div", class_="diagram-placeholder").extract()
        engine.release.set()
        return rendered, await asyncio.gather(*tasks)

    rendered, results = asyncio.run(scenario())
    assert results == [False]
    assert rendered.soup.find("svg") is None


def test_run_counts_replacements():
    rendered = render_markdown(MERMAID_MD + "\n```mermaid\ngraph LR; C-->D\n```\n")
    assert asyncio.run(DiagramPass(FakeEngine()).run(rendered)) == 2


def test_missing_mermaid_cli_raises_diagram_error():
    engine = MermaidCliEngine(command="pastemark-no-such-mmdc")
    with pytest.raises(DiagramError):
        asyncio.run(engine.render_diagram("graph TD; A-->B"))


def test_engine_is_created_once(monkeypatch):
    monkeypatch.setattr(diagrams, "_ENGINE", None)
    with ThreadPoolExecutor(max_workers=8) as pool:
        engines = list(pool.map(lambda _: get_diagram_engine(), range(16)))
    assert all(engine is engines[0] for engine in engines)
    assert isinstance(engines[0], MermaidCliEngine)


def test_set_diagram_engine_overrides_default(monkeypatch):
    monkeypatch.setattr(diagrams, "_ENGINE", None)
    engine = FakeEngine()
    set_diagram_engine(engine)
    assert get_diagram_engine() is engine
    rendered = asyncio.run(render_markdown_async(MERMAID_MD))
    assert rendered.soup.find("svg") is not None


class NonTextEngine:
    async def render_diagram(self, source: str):
        return None


def test_non_text_engine_result_keeps_placeholder():
    rendered = asyncio.run(render_markdown_async("```mermaid\nx\n```\n\n# H", engine=NonTextEngine()))
    assert rendered.soup.find("div", class_="diagram-placeholder") is not None
    assert rendered.soup.find("h1", id="h") is not None


def test_detached_ancestor_drops_late_result():
    async def scenario():
        rendered = render_markdown("!box{50%\n```mermaid\ngraph TD; A-->B\n```\n%}\n")
        engine = GatedEngine()
        tasks = DiagramPass(engine).schedule(rendered)
        container = rendered.soup.find("div", class_="custom-block-box").extract()
        engine.release.set()
        return container, await asyncio.gather(*tasks)

    container, results = asyncio.run(scenario())
    assert results == [False]
    assert container.find("svg") is None
    assert container.find("div", class_="diagram-placeholder") is not None
