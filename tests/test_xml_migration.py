"""Tests for migration of the legacy cocoon: config.xml dialect."""

from __future__ import annotations

import pytest
from lxml import etree

from cocoon_sdk import ConfigDocument, NodeFilter, Orientation
from cocoon_sdk.xml_migration import (
    fix_git_plugin_specs,
    is_git_url,
    migrate_platforms,
    migrate_plugins,
)
from cocoon_sdk.xml_nodes import tag_name

from .conftest import GIT_PLUGIN_URL, LEGACY_XML


@pytest.fixture
def legacy() -> ConfigDocument:
    return ConfigDocument(LEGACY_XML)


class TestIsGitUrl:
    """Tests for git URL detection."""

    @pytest.mark.parametrize(
        "value",
        [
            "https://github.com/example/plugin.git",
            "http://git.example.com/plugin.git",
            "git+https://github.com/example/plugin.git#v1.0.0",
            "ssh://git@github.com/example/plugin.git",
            "git://github.com/example/plugin.git",
        ],
    )
    def test_git_urls(self, value):
        """Test values recognized as git URLs."""
        assert is_git_url(value)

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "cordova-plugin-camera",
            "com.example.git.plugin",
            "https://github.com/example/plugin",
            "/local/path/plugin.git",
            "git@github.com:example/plugin.git",
        ],
    )
    def test_not_git_urls(self, value):
        """Test values that are not git URLs."""
        assert not is_git_url(value)


class TestMigration:
    """Tests for loading legacy documents."""

    def test_no_legacy_nodes_remain(self, legacy):
        """Test that every cocoon: node is rewritten."""
        tags = [tag_name(node) for node in legacy.root.iter(etree.Element)]

        assert not [t for t in tags if t.startswith("cocoon:")]
        assert "cocoon:" not in legacy.xml()

    def test_document_order(self, legacy):
        """Test that migrated nodes keep their position."""
        tags = [tag_name(node) for node in legacy.root.iterchildren(etree.Element)]

        assert tags == ["name", "engine", "platform", "platform", "plugin", "plugin"]

    def test_platform_version_becomes_engine(self, legacy):
        """Test that a platform version is moved to an engine spec."""
        assert legacy.get_engine_spec("ios") == "3.9.0"
        assert legacy.get_engine("android") is None

    def test_platform_children_are_moved(self, legacy):
        """Test that platform children land in the new wrapper."""
        assert legacy.get_orientation("ios") == Orientation.PORTRAIT

    def test_enabled_becomes_preference(self, legacy):
        """Test that the enabled attribute becomes a preference."""
        assert legacy.get_preference("enabled", "ios") == "true"
        assert legacy.is_platform_enabled("ios") is True
        assert legacy.is_platform_enabled("android") is False

    def test_plugin_version_becomes_spec(self, legacy):
        """Test that a plugin version is moved to its spec."""
        assert legacy.find_plugin("com.example.ads").get("spec") == "1.0.0"

    def test_params_become_variables(self, legacy):
        """Test that params become variables in document order."""
        plugin = legacy.find_plugin("com.example.ads")

        assert [tag_name(child) for child in plugin] == ["variable", "variable"]
        assert legacy.get_plugin_variables("com.example.ads") == {
            "API_KEY": "xyz",
            "API_SECRET": "abc",
        }

    def test_git_plugin_spec(self, legacy):
        """Test that a git plugin is pinned to its URL."""
        assert legacy.find_plugin(GIT_PLUGIN_URL).get("spec") == GIT_PLUGIN_URL

    def test_migration_runs_once(self, legacy):
        """Test that reloading migrated output changes nothing."""
        text = legacy.xml()

        assert ConfigDocument(text).xml() == text


class TestMigrationSteps:
    """Tests for the individual migration passes."""

    def test_counts(self):
        """Test that each pass reports how many nodes it rewrote."""
        root = etree.fromstring(LEGACY_XML.encode("utf-8"))

        assert migrate_platforms(root) == 2
        assert migrate_plugins(root) == 2
        assert migrate_platforms(root) == 0

    def test_fix_git_plugin_specs(self):
        """Test that plain plugins with a git URL name are repinned."""
        root = etree.fromstring(
            f'<widget><plugin name="{GIT_PLUGIN_URL}" spec="1.0.0"/>'
            f'<plugin name="cordova-plugin-camera" spec="1.0.0"/></widget>'
        )

        assert fix_git_plugin_specs(root) == 1
        assert root[0].get("spec") == GIT_PLUGIN_URL
        assert root[1].get("spec") == "1.0.0"

    def test_git_spec_fixed_on_load(self):
        """Test that loading a document repins git plugins."""
        doc = ConfigDocument(f'<widget><plugin name="{GIT_PLUGIN_URL}" spec="~2.0"/></widget>')

        plugins = doc.find_nodes(NodeFilter("plugin"))
        assert plugins[0].get("spec") == GIT_PLUGIN_URL
