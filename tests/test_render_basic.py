import textwrap

import pytest
from bs4 import BeautifulSoup

from PasteMark import styles
from PasteMark.config import RenderConfig
from PasteMark.model import CodeBlock, DirectiveContainer, Document, Heading, Paragraph, Text
from PasteMark.pipeline import RenderedDocument, render_markdown
from PasteMark.renderer_html import render_document


def _soup(text: str, config: RenderConfig | None = None) -> BeautifulSoup:
    return render_markdown(text, config).soup


@pytest.mark.parametrize(
    "source",
    [
        "",
        "\x00",
        "[",
        "```",
        ":::",
        "!box{",
        "%}",
        "$$",
        "![](",
        "| a |\n|---|",
        ">" * 200 + " deep",
        "- " * 100 + "x",
        "!!! note",
        "%red%",
        "==",
        "~~",
        "++",
        "!>",
        "# " * 50,
        "<script>alert(1)</script>",
        "---\n: [\n---",
    ],
)
def test_render_never_raises(source):
    rendered = render_markdown(source)
    assert isinstance(rendered, RenderedDocument)
    assert isinstance(rendered.html, str)


def test_raw_html_is_escaped_by_default():
    soup = _soup("<script>alert(1)</script>\n\n<b>x</b>")
    assert soup.find("script") is None
    assert soup.find("b") is None
    assert "<script>" in soup.get_text()


def test_right_aligned_paragraph():
    paragraph = _soup("Right aligned->").find("p")
    assert "text-right" in paragraph["class"]
    assert paragraph.get_text() == "Right aligned"


def test_centered_paragraph():
    paragraph = _soup("->Centered<-").find("p")
    assert "text-center" in paragraph["class"]
    assert paragraph.get_text() == "Centered"


def test_image_alt_directives():
    image = _soup("![Alt#left#100x50](pic.png)").find("img")
    assert image["alt"] == "Alt"
    assert image["src"] == "pic.png"
    assert "float: left" in image["style"]
    assert "width: 100px" in image["style"]
    assert "height: 50px" in image["style"]


def test_image_size_suffix_is_consumed():
    paragraph = _soup("![Logo](logo.png){120:40} caption").find("p")
    assert "width: 120px" in paragraph.find("img")["style"]
    assert "{120:40}" not in paragraph.get_text()
    assert "caption" in paragraph.get_text()


def test_known_and_unknown_directives():
    soup = _soup(":::note\nhi\n:::\n\n:::bogus\nho\n:::\n")
    note, bogus = soup.select("div.admonition, div.directive")
    assert note.get("data-admonition") == "note"
    assert "admonition-note" in note["class"]
    assert "admonition" not in bogus["class"]
    assert "directive-bogus" in bogus["class"]


def test_width_block_renders_container():
    soup = _soup("!box{50%\nHello\n%}")
    block = soup.find("div", class_="custom-block-box")
    assert block is not None
    assert block["style"] == "width: 50%;"
    assert block.find("p").get_text() == "Hello"
    assert "%}" not in soup.get_text()


def test_unterminated_width_block_renders_literal_text():
    soup = _soup("!box{50%\nHello")
    assert soup.find("div", class_="custom-block") is None
    assert [p.get_text() for p in soup.find_all("p")] == ["!box{50%", "Hello"]


def test_heading_ids_are_unique():
    soup = _soup("# Setup\n\n# Setup\n\n## Hello, World!")
    assert [h["id"] for h in soup.find_all(["h1", "h2"])] == ["setup", "setup-1", "hello-world"]
    assert soup.find("h1").find("a")["href"] == "#setup"


def test_mermaid_block_becomes_placeholder():
    soup = _soup("```mermaid\ngraph TD; A-->B\n```")
    placeholder = soup.find("div", class_="mermaid")
    assert placeholder["data-diagram-id"] == "diagram-0"
    assert "diagram-placeholder" in placeholder["class"]
    assert placeholder.get_text() == "graph TD; A-->B\n"
    assert soup.find("pre") is None


def test_code_block_is_highlighted():
    code = _soup("```python\nprint(1)\n```").find("code")
    assert "language-python" in code["class"]
    assert "highlight" in code["class"]
    assert code.find("span") is not None


def test_unknown_language_is_plain_code():
    code = _soup("```nosuchlanguage\n<tag>\n```").find("code")
    assert code.find("span") is None
    assert code.get_text() == "<tag>\n"


def test_task_list_checkboxes():
    boxes = _soup("- [x] done\n- [ ] todo").find_all("input")
    assert [box.has_attr("checked") for box in boxes] == [True, False]
    assert all(box.has_attr("disabled") for box in boxes)


def test_table_is_wrapped_for_scrolling():
    soup = _soup("| a | b |\n|:-|-:|\n| 1 | 2 |")
    wrapper = soup.find("table").parent
    assert "overflow-x-auto" in wrapper["class"]
    assert soup.find("td")["style"] == "text-align: left"


def test_inline_extras():
    soup = _soup("==mark== ++Esc++ %#f00%red%% %url(x)%bad%%")
    assert soup.find("mark").get_text() == "mark"
    assert soup.find("kbd").get_text() == "Esc"
    assert soup.find("span", style="color: #f00").get_text() == "red"


def test_soft_breaks_render_as_line_breaks():
    soup = _soup("one\ntwo")
    assert soup.find("p").find("br") is not None
    soup = _soup("one\ntwo", RenderConfig(breaks=False))
    assert soup.find("p").find("br") is None


def test_allowed_raw_html_gets_styled():
    md_text = textwrap.dedent(
        """\
        <details><summary>More</summary>

        Hidden body

        </details>
        """
    )
    soup = _soup(md_text, RenderConfig(allow_html=True))
    assert "my-4" in soup.find("details")["class"]
    assert "cursor-pointer" in soup.find("summary")["class"]


def test_render_is_deterministic():
    source = "# A\n\n[TOC]\n\n## B\n\n```mermaid\ngraph LR; x-->y\n```\n\n![i#right](i.png)"
    assert render_markdown(source).html == render_markdown(source).html


def test_render_document_directly():
    doc = Document(
        blocks=[
            Heading(level=2, inline=[Text("Intro")]),
            Paragraph(inline=[Text("a < b")]),
            CodeBlock(language=None, code="x"),
        ]
    )
    html = render_document(doc)
    assert '<h2 id="intro">' in html
    assert "a &lt; b" in html
    assert '<pre><code class="hljs">x</code></pre>' in html


def test_front_matter_is_exposed_as_metadata():
    rendered = render_markdown("---\ntitle: Notes\n---\n\nbody")
    assert rendered.metadata == {"title": "Notes"}
    assert "title" not in rendered.soup.get_text()


def test_unknown_highlight_style_still_renders():
    soup = _soup("# Hi\n\n```python\nx = 1\n```", RenderConfig(pygments_style="no-such-style"))
    assert soup.find("h1", id="hi") is not None
    assert soup.find("code").find("span") is not None


def test_unterminated_directive_closes_at_end():
    soup = _soup(":::note\nbody\n\nmore")
    admonition = soup.find("div", class_="admonition-note")
    assert admonition is not None
    assert [p.get_text() for p in admonition.find_all("p")] == ["body", "more"]


def test_heading_alignment_markers():
    heading = _soup("### ->Header<-\n\n## Right->").find_all(["h2", "h3"])
    assert "text-center" in heading[0]["class"]
    assert heading[0].get_text() == "Header"
    assert heading[0]["id"] == "header"
    assert "text-right" in heading[1]["class"]
    assert heading[1].get_text() == "Right"


def test_unknown_admonition_type_uses_default_colours():
    assert styles.admonition_classes("zzz") == styles.admonition_classes("note")
    doc = Document(blocks=[DirectiveContainer(name="zzz", blocks=[], admonition="zzz")])
    div = BeautifulSoup(render_document(doc), "html.parser").find("div")
    assert div["data-admonition"] == "zzz"
    assert "admonition-note" in div["class"]
    assert "border-blue-500" in div["class"]
