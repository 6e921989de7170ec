import textwrap

import pytest

from PasteMark.config import DEFAULT_CONFIG, RenderConfig, config_from_mapping, load_config
from PasteMark.errors import ConfigError, PasteMarkError


def test_load_config_reads_yaml(tmp_path):
    path = tmp_path / "pastemark.yaml"
    path.write_text(
        textwrap.dedent(
            """\
            allow_html: true
            toc_title: Contents
            diagram_timeout: 5
            """
        ),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config == RenderConfig(allow_html=True, toc_title="Contents", diagram_timeout=5.0)
    assert isinstance(config.diagram_timeout, float)


def test_empty_config_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


@pytest.mark.parametrize(
    "data",
    [
        {"no_such_option": 1},
        {"allow_html": "yes"},
        {"contents_toc_depth": True},
        {"toc_title": 3},
        {"pygments_style": "no-such-style"},
    ],
)
def test_invalid_options_raise(data):
    with pytest.raises(ConfigError):
        config_from_mapping(data)


def test_non_mapping_root_raises(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_file_raises_package_error(tmp_path):
    with pytest.raises(PasteMarkError):
        load_config(tmp_path / "missing.yaml")
