"""
Tests for Configuration System.

This test suite covers:
1. Schema validation (type mismatch, constraint violation, blank values)
2. TOML generation from schema (with comments)
3. TOML read/write
4. Settings model attribute access, bulk assignment and validation
5. Host configuration loading and saving
"""

import tempfile
from pathlib import Path

import pytest

from plughost.config import field
from plughost.config.host import ConfigError, HostConfig, load_host_config, save_host_config
from plughost.config.runtime import SettingsModel
from plughost.config.schema import SchemaError, SettingField, ValidationError


class SeoSettings(SettingsModel):
    fields = {
        "title_suffix": field(str, "", "Appended to page titles", max=10),
        "limit": field(int, 10, "Result limit", min=1, max=100),
        "mode": field(str, "auto", "Mode", choices=["auto", "manual"]),
        "api_key": field(str, "", "API key", required=True),
    }


class TestSchemaValidation:
    """Test schema field validation."""

    def test_field_default_type_mismatch(self):
        """SettingField should reject default value that doesn't match type."""
        with pytest.raises(SchemaError, match="does not match type"):
            SettingField(int, "not an int", "Bad default")

    def test_field_min_max_constraints(self):
        """SettingField should enforce min/max for numbers."""
        limit = field(int, 50, "Number with range", min=0, max=100)

        limit.validate(0)
        limit.validate(100)

        with pytest.raises(ValidationError, match="less than minimum"):
            limit.validate(-1)

        with pytest.raises(ValidationError, match="greater than maximum"):
            limit.validate(101)

    def test_field_string_length_constraints(self):
        """SettingField should enforce min/max length for strings."""
        name = field(str, "hello", "String with length", min=3, max=10)

        name.validate("abc")

        with pytest.raises(ValidationError, match="less than minimum"):
            name.validate("ab")

        with pytest.raises(ValidationError, match="greater than maximum"):
            name.validate("12345678901")

    def test_field_choices_constraint(self):
        """SettingField should enforce choices."""
        color = field(str, "red", "Color choice", choices=["red", "green", "blue"])

        color.validate("green")

        with pytest.raises(ValidationError, match="not in allowed choices"):
            color.validate("yellow")

    def test_field_choices_default_must_be_in_choices(self):
        """SettingField default must be in choices if choices specified."""
        with pytest.raises(SchemaError, match="not in choices"):
            field(str, "yellow", "Bad choice", choices=["red", "green", "blue"])

    def test_bool_is_not_a_number(self):
        """True should not pass as an int."""
        with pytest.raises(ValidationError, match="Expected type int"):
            field(int, 1).validate(True)

    def test_blank_values(self):
        """Blank values pass unless the field is required."""
        field(str, "").validate("")
        field(int, None).validate(None)

        with pytest.raises(ValidationError, match="blank"):
            field(str, "", required=True).validate("")


class TestTOMLHandler:
    """Test TOML file I/O operations."""

    def test_toml_read_write_roundtrip(self):
        """TOML read/write should preserve data."""
        from plughost.config.toml_handler import read_toml, write_toml

        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "nested" / "test.toml"

            data = {
                "paths": {"plugins": "plugins", "vendor": "vendor"},
                "app": {"installed": True, "maintenance": False},
            }
            write_toml(config_file, data)

            assert read_toml(config_file) == data

    def test_read_invalid_toml(self):
        """Unparseable TOML should raise TOMLError."""
        from plughost.config.toml_handler import TOMLError, read_toml

        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "bad.toml"
            config_file.write_text("[paths\nplugins = ", encoding="utf-8")

            with pytest.raises(TOMLError):
                read_toml(config_file)

    def test_toml_generate_from_schema(self):
        """TOML generation should include comments from schema."""
        from plughost.config.toml_handler import generate_toml_from_schema

        schema = {
            "threshold": field(float, 0.5, "Detection threshold", min=0.0, max=1.0),
            "max_retries": field(int, 3, "Maximum retry attempts", min=1, max=10),
            "label": field(str, None, "Optional label"),
        }
        settings = {"threshold": 0.25, "max_retries": 3, "label": None}

        toml_str = generate_toml_from_schema("seo", schema, settings)

        assert "Detection threshold" in toml_str
        assert "Maximum retry attempts" in toml_str
        assert "max: 10" in toml_str
        assert "threshold = 0.25" in toml_str
        assert "max_retries = 3" in toml_str
        assert "label is not set" in toml_str
        assert "[seo]" in toml_str


class TestSettingsModel:
    """Test the runtime settings model."""

    def test_defaults(self):
        """A new model should hold the declared defaults."""
        settings = SeoSettings()

        assert settings.limit == 10
        assert settings.mode == "auto"
        assert settings.attributes() == ["title_suffix", "limit", "mode", "api_key"]

    def test_attribute_write(self):
        """Attribute writes should not validate."""
        settings = SeoSettings()
        settings.limit = 1000

        assert settings.limit == 1000
        assert settings.validate() is False
        assert "limit" in settings.errors

    def test_unknown_field(self):
        """Unknown settings should raise AttributeError."""
        settings = SeoSettings()

        with pytest.raises(AttributeError, match="not found"):
            settings.missing

        with pytest.raises(AttributeError, match="not found"):
            settings.missing = 1

    def test_set_attributes_unsafe(self):
        """safe_only=False assigns every declared value as-is."""
        settings = SeoSettings()
        settings.set_attributes({"limit": 500, "unknown": 1}, safe_only=False)

        assert settings.limit == 500
        assert "unknown" not in settings.to_dict()

    def test_set_attributes_safe_only(self):
        """safe_only=True skips values that fail validation."""
        settings = SeoSettings()
        settings.set_attributes({"limit": 500, "mode": "manual"})

        assert settings.limit == 10
        assert settings.mode == "manual"

    def test_validate_collects_errors(self):
        """validate() should record one error per bad field."""
        settings = SeoSettings({"title_suffix": "far too long a suffix", "mode": "other"})

        assert settings.validate() is False
        assert set(settings.errors) == {"title_suffix", "mode", "api_key"}

        settings.set_attributes(
            {"title_suffix": " | Acme", "mode": "manual", "api_key": "k"}, safe_only=False
        )
        assert settings.validate() is True
        assert settings.errors == {}

    def test_to_dict_is_a_copy(self):
        """to_dict() should not expose internal state."""
        settings = SeoSettings()
        exported = settings.to_dict()
        exported["limit"] = 99

        assert settings.limit == 10

    def test_equality(self):
        """Models of the same class with the same values are equal."""
        assert SeoSettings({"limit": 5}) == SeoSettings({"limit": 5})
        assert SeoSettings({"limit": 5}) != SeoSettings({"limit": 6})


class TestHostConfig:
    """Test host configuration loading."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """A missing config file should give the defaults."""
        config = load_host_config(tmp_path / "absent.toml")

        assert config == HostConfig()
        assert config.database.url == "sqlite:///plughost.db"
        assert config.app.installed is True

    def test_load_sections(self, tmp_path):
        """Set values should override defaults, section by section."""
        config_file = tmp_path / "plughost.toml"
        config_file.write_text(
            '[paths]\nplugins = "ext"\n\n'
            '[database]\nurl = "sqlite:///:memory:"\n\n'
            "[app]\nmaintenance = true\n",
            encoding="utf-8",
        )

        config = load_host_config(config_file)

        assert config.paths.plugins == Path("ext")
        assert config.paths.vendor == Path("vendor")
        assert config.database.url == "sqlite:///:memory:"
        assert config.app.maintenance is True
        assert config.logging.level == "INFO"

    def test_unknown_section(self, tmp_path):
        """Unknown sections should be rejected."""
        config_file = tmp_path / "plughost.toml"
        config_file.write_text("[server]\nport = 80\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Unknown configuration section"):
            load_host_config(config_file)

    def test_unknown_key(self, tmp_path):
        """Unknown keys should be rejected."""
        config_file = tmp_path / "plughost.toml"
        config_file.write_text("[app]\nfrozen = true\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Unknown setting"):
            load_host_config(config_file)

    def test_wrong_type(self, tmp_path):
        """Values of the wrong type should be rejected."""
        config_file = tmp_path / "plughost.toml"
        config_file.write_text('[logging]\nrotation_size_mb = "big"\n', encoding="utf-8")

        with pytest.raises(ConfigError, match="must be int"):
            load_host_config(config_file)

    def test_save_then_load(self, tmp_path):
        """A saved config should load back unchanged."""
        config_file = tmp_path / "config" / "plughost.toml"
        config = HostConfig()
        config.paths.plugins = Path("extensions")
        config.app.updating = True

        save_host_config(config, config_file)

        assert load_host_config(config_file) == config
