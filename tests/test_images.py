from PasteMark.images import parse_image_directive, split_size_suffix
from PasteMark.model import Image


def test_alt_markers_float_and_size():
    directive = parse_image_directive(Image(src="pic.png", alt="Alt#left#100x50"))
    assert directive.alt == "Alt"
    assert directive.float == "left"
    assert (directive.width, directive.height) == ("100px", "50px")
    style = directive.style()
    assert "float: left" in style
    assert "width: 100px" in style
    assert "height: 50px" in style


def test_center_marker_aligns_without_float():
    directive = parse_image_directive(Image(src="pic.png", alt="Logo#center"))
    assert directive.align == "center"
    assert directive.float is None
    assert directive.alt == "Logo"


def test_url_fragment_sets_position_and_is_stripped():
    directive = parse_image_directive(Image(src="https://example.com/pic.png#right", alt="pic"))
    assert directive.src == "https://example.com/pic.png"
    assert directive.float == "right"


def test_size_suffix_overrides_alt_size():
    size, rest = split_size_suffix("{50%:20vw} trailing")
    assert size == ("50%", "20vw")
    assert rest == " trailing"
    directive = parse_image_directive(Image(src="a.png", alt="a#10x10"), size)
    assert (directive.width, directive.height) == ("50%", "20vw")


def test_bare_size_suffix_is_pixels():
    assert split_size_suffix("{100:75}") == (("100px", "75px"), "")


def test_text_without_suffix_is_unchanged():
    assert split_size_suffix("{wide}") == (None, "{wide}")


def test_marker_prefix_words_are_not_markers():
    directive = parse_image_directive(Image(src="pic.png", alt="Pic#leftover#centered"))
    assert directive.alt == "Pic#leftover#centered"
    assert directive.float is None
    assert directive.align is None
