"""Tests for officepdf.plugins.loader: discovery, renderer loading, disk factories."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from officepdf.config.models import OfficePdfConfig, PluginsConfig
from officepdf.plugins.loader import PluginLoader, PluginNotFoundError


# -- Helpers ----------------------------------------------------------------


class XlsxRenderer:
    name = "xlsx-native"

    def supports(self, extension):
        return extension == "xlsx"

    def render(self, input_path, output_path, target=None, options=None, cancel_event=None):
        return output_path


def make_entry_point(name: str, load_return=None):
    """Build a mock entry point with .name and .load()."""
    ep = MagicMock()
    ep.name = name
    ep.load.return_value = load_return or MagicMock()
    return ep


def make_loader(renderers=None) -> PluginLoader:
    config = OfficePdfConfig(plugins=PluginsConfig(renderers=renderers or []))
    return PluginLoader(config)


def _ep_side_effect(mapping: dict[str, list]):
    """side_effect for entry_points(group=...); unknown groups return []."""
    def _side_effect(*, group):
        return mapping.get(group, [])
    return _side_effect


# -- Discovery --------------------------------------------------------------


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_discover_empty(mock_eps):
    mock_eps.side_effect = _ep_side_effect({})
    result = make_loader().discover()
    assert result == {"renderer": [], "disk": []}


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_discover_finds_registered_plugins(mock_eps):
    mock_eps.side_effect = _ep_side_effect({
        "officepdf.plugins.renderer": [make_entry_point("xlsx-native")],
        "officepdf.plugins.disk": [make_entry_point("gcs"), make_entry_point("sftp")],
    })
    result = make_loader().discover()
    assert result["renderer"] == ["xlsx-native"]
    assert result["disk"] == ["gcs", "sftp"]


# -- Renderers --------------------------------------------------------------


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_no_renderers_configured(mock_eps):
    assert make_loader().load_renderers() == []
    mock_eps.assert_not_called()


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_renderer_class_is_instantiated(mock_eps):
    mock_eps.side_effect = _ep_side_effect({
        "officepdf.plugins.renderer": [make_entry_point("xlsx-native", XlsxRenderer)],
    })
    (renderer,) = make_loader(["xlsx-native"]).load_renderers()
    assert isinstance(renderer, XlsxRenderer)


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_renderer_instance_is_used_as_is(mock_eps):
    instance = XlsxRenderer()
    mock_eps.side_effect = _ep_side_effect({
        "officepdf.plugins.renderer": [make_entry_point("xlsx-native", instance)],
    })
    assert make_loader(["xlsx-native"]).load_renderers() == [instance]


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_renderers_keep_config_order(mock_eps):
    first, second = XlsxRenderer(), XlsxRenderer()
    mock_eps.side_effect = _ep_side_effect({
        "officepdf.plugins.renderer": [
            make_entry_point("a", first),
            make_entry_point("b", second),
        ],
    })
    assert make_loader(["b", "a"]).load_renderers() == [second, first]


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_missing_renderer_raises(mock_eps):
    mock_eps.side_effect = _ep_side_effect({})
    with pytest.raises(PluginNotFoundError, match="No renderer plugin found with name 'pdfium'"):
        make_loader(["pdfium"]).load_renderers()


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_non_renderer_rejected(mock_eps):
    mock_eps.side_effect = _ep_side_effect({
        "officepdf.plugins.renderer": [make_entry_point("junk", object())],
    })
    with pytest.raises(TypeError, match="Renderer protocol"):
        make_loader(["junk"]).load_renderers()


# -- Disk factories ---------------------------------------------------------


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_disk_factory(mock_eps):
    factory = MagicMock()
    mock_eps.side_effect = _ep_side_effect({
        "officepdf.plugins.disk": [make_entry_point("gcs", factory)],
    })
    assert make_loader().load_disk_factory("gcs") is factory


@patch("officepdf.plugins.loader.importlib.metadata.entry_points")
def test_missing_disk_factory(mock_eps):
    mock_eps.side_effect = _ep_side_effect({})
    with pytest.raises(PluginNotFoundError) as exc_info:
        make_loader().load_disk_factory("dropbox")
    assert exc_info.value.plugin_type == "disk"
    assert exc_info.value.name == "dropbox"
