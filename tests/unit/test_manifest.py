"""
Tests for manifest scraping and plugin descriptors.

This test suite covers:
1. Manifest reading (valid/invalid cases)
2. Field lookups and their fallbacks
3. Class inference from autoload paths
4. Config validation and defaults
"""

import json
import tempfile
from pathlib import Path

import pytest

from plughost.plugin.descriptor import PluginDescriptor, validate_config
from plughost.plugin.errors import InvalidPluginConfigError
from plughost.plugin.manifest import (
    DEV_VERSION,
    ManifestError,
    generate_default_aliases,
    lookup,
    read_manifest,
    scrape_config,
    split_package_name,
)

PLUGIN_PATH = Path("/srv/plugins/seo")


def entry_point_at(*paths: str):
    """file_exists predicate that only knows the given entry points."""
    known = {Path(p) for p in paths}
    return lambda path: path in known


class TestReadManifest:
    """Test manifest file reading."""

    def test_read_valid_manifest(self):
        """Should decode a JSON object."""
        with tempfile.TemporaryDirectory() as tmpdir:
            manifest_path = Path(tmpdir) / "manifest.json"
            manifest_path.write_text(json.dumps({"name": "acme/seo"}), encoding="utf-8")

            assert read_manifest(manifest_path) == {"name": "acme/seo"}

    def test_missing_manifest(self):
        """Should raise ManifestError for a missing file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ManifestError, match="not found"):
                read_manifest(Path(tmpdir) / "manifest.json")

    def test_invalid_json(self):
        """Should raise ManifestError for invalid JSON."""
        with tempfile.TemporaryDirectory() as tmpdir:
            manifest_path = Path(tmpdir) / "manifest.json"
            manifest_path.write_text("{invalid json", encoding="utf-8")

            with pytest.raises(ManifestError, match="Failed to parse"):
                read_manifest(manifest_path)

    def test_non_object_manifest(self):
        """Should reject a manifest that isn't an object."""
        with tempfile.TemporaryDirectory() as tmpdir:
            manifest_path = Path(tmpdir) / "manifest.json"
            manifest_path.write_text("[1, 2]", encoding="utf-8")

            with pytest.raises(ManifestError, match="JSON object"):
                read_manifest(manifest_path)


class TestLookups:
    """Test the lookup helpers."""

    def test_lookup_paths(self):
        data = {"authors": [{"name": "Acme"}], "support": {"docs": ""}}

        assert lookup(data, ("authors", 0, "name")) == "Acme"
        assert lookup(data, ("authors", 1, "name")) is None
        assert lookup(data, ("support", "docs")) is None
        assert lookup(data, ("missing",)) is None

    def test_split_package_name(self):
        assert split_package_name("acme/seo") == ("acme", "seo")
        assert split_package_name("seo") == (None, "seo")


class TestScrapeConfig:
    """Test deriving a config from a manifest."""

    def test_extra_fields_win(self):
        """extra.* values should take precedence over top-level fields."""
        manifest = {
            "name": "acme/seo",
            "version": "1.2.0",
            "description": "Top-level description",
            "homepage": "https://acme.test",
            "extra": {
                "class": "acme_seo.plugin:SeoPlugin",
                "name": "SEO",
                "version": "1.3.0",
                "schemaVersion": "1.1.0",
                "description": "Extra description",
                "developer": "Acme Inc",
                "developerUrl": "https://dev.acme.test",
                "documentationUrl": "https://docs.acme.test",
            },
        }

        config = scrape_config("seo", manifest, PLUGIN_PATH, entry_point_at())

        assert config["class"] == "acme_seo.plugin:SeoPlugin"
        assert config["name"] == "SEO"
        assert config["version"] == "1.3.0"
        assert config["schemaVersion"] == "1.1.0"
        assert config["description"] == "Extra description"
        assert config["developer"] == "Acme Inc"
        assert config["developerUrl"] == "https://dev.acme.test"
        assert config["documentationUrl"] == "https://docs.acme.test"

    def test_fallbacks(self):
        """Top-level fields, authors and vendor should fill the gaps."""
        manifest = {
            "name": "acme/seo",
            "description": "Search engine tools",
            "authors": [{"name": "Jane", "homepage": "https://jane.test"}],
            "support": {"docs": "https://docs.acme.test"},
            "extra": {"class": "acme_seo.plugin:Plugin"},
        }

        config = scrape_config("seo", manifest, PLUGIN_PATH, entry_point_at())

        assert config["name"] == "seo"
        assert config["version"] == DEV_VERSION
        assert config["description"] == "Search engine tools"
        assert config["developer"] == "Jane"
        assert config["developerUrl"] == "https://jane.test"
        assert config["documentationUrl"] == "https://docs.acme.test"
        assert "schemaVersion" not in config

    def test_homepage_before_author_homepage(self):
        manifest = {
            "name": "acme/seo",
            "homepage": "https://acme.test",
            "authors": [{"homepage": "https://jane.test"}],
            "extra": {"class": "x:Y"},
        }

        config = scrape_config("seo", manifest, PLUGIN_PATH, entry_point_at())

        assert config["developerUrl"] == "https://acme.test"

    def test_vendor_as_developer(self):
        """Without authors, the vendor prefix is the developer."""
        manifest = {"name": "acme/seo", "extra": {"class": "x:Y"}}

        config = scrape_config("seo", manifest, PLUGIN_PATH, entry_point_at())

        assert config["developer"] == "acme"

    def test_class_inferred_from_autoload(self):
        """The entry point under an autoload path gives the class."""
        manifest = {
            "name": "acme/seo",
            "version": "1.0.0",
            "autoload": {"acme_seo": "src/", "acme_seo_tests": "tests/"},
        }

        config = scrape_config(
            "seo", manifest, PLUGIN_PATH, entry_point_at("/srv/plugins/seo/src/plugin.py")
        )

        assert config["class"] == "acme_seo.plugin:Plugin"
        assert config["aliases"] == {
            "acme_seo": "/srv/plugins/seo/src",
            "acme_seo_tests": "/srv/plugins/seo/tests",
        }

    def test_missing_class(self):
        """Without extra.class or an entry point there is no config."""
        manifest = {"name": "acme/seo", "autoload": {"acme_seo": "src/"}}

        assert scrape_config("seo", manifest, PLUGIN_PATH, entry_point_at()) is None

    def test_list_autoload_paths_skipped(self):
        """Autoload paths given as a list can't become aliases."""
        aliases, class_ref = generate_default_aliases(
            PLUGIN_PATH,
            {"autoload": {"acme_seo": ["src/", "lib/"], "acme_util": "/opt/util"}},
            entry_point_at(),
        )

        assert aliases == {"acme_util": "/opt/util"}
        assert class_ref is None


class TestValidateConfig:
    """Test config validation and descriptors."""

    def test_defaults_added(self):
        config = validate_config("seo", {"class": "x:Y", "name": "SEO", "version": "1.0.0"})

        assert config["schemaVersion"] == "1.0.0"
        assert config["developer"] is None
        assert config["documentationUrl"] is None

    @pytest.mark.parametrize("missing", ["class", "name", "version"])
    def test_required_keys(self, missing):
        config = {"class": "x:Y", "name": "SEO", "version": "1.0.0"}
        del config[missing]

        with pytest.raises(InvalidPluginConfigError, match=missing) as exc_info:
            validate_config("seo", config)

        assert exc_info.value.missing == [missing]

    def test_not_a_mapping(self):
        with pytest.raises(InvalidPluginConfigError):
            validate_config("seo", None)

    def test_descriptor_from_config(self):
        descriptor = PluginDescriptor.from_config(
            "SEO",
            {
                "class": "acme_seo.plugin:Plugin",
                "name": "SEO",
                "version": 2,
                "developerUrl": "https://acme.test",
                "aliases": {"acme_seo": "/srv/plugins/seo/src"},
            },
        )

        assert descriptor.handle == "seo"
        assert descriptor.version == "2"
        assert descriptor.schema_version == "1.0.0"
        assert descriptor.developer_url == "https://acme.test"
        assert descriptor.aliases == {"acme_seo": "/srv/plugins/seo/src"}
        assert descriptor.to_config()["developerUrl"] == "https://acme.test"
