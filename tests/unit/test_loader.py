"""
Tests for plugin code loading and script hooks.

This test suite covers:
1. Alias resolution (longest prefix wins)
2. Importing modules and packages through aliases
3. Class references
4. Module purging
5. Hook execution (success, failure, missing hooks)
"""

import sys
import textwrap

import pytest

from plughost.plugin.hooks import HookError, HookType, execute_hook, has_hook
from plughost.plugin.loader import AliasRegistry, LoaderError, load_class, load_module


@pytest.fixture
def aliases():
    registry = AliasRegistry()
    registry.install()
    yield registry
    registry.uninstall()


def write(path, source):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")


class TestAliasResolution:
    """Test mapping module names to paths."""

    def test_longest_prefix_wins(self, tmp_path):
        registry = AliasRegistry()
        registry.set_alias("acme", tmp_path / "acme")
        registry.set_alias("acme.seo", tmp_path / "seo")

        assert registry.resolve("acme.seo.plugin") == tmp_path / "seo" / "plugin"
        assert registry.resolve("acme.util") == tmp_path / "acme" / "util"
        assert registry.resolve("acme") == tmp_path / "acme"
        assert registry.resolve("other") is None

    def test_remove_alias(self, tmp_path):
        registry = AliasRegistry()
        registry.set_alias("acme", tmp_path)
        registry.set_alias("acme", None)

        assert registry.get_alias("acme") is None
        assert registry.aliases() == {}


class TestAliasImports:
    """Test importing code through the alias finder."""

    def test_import_module_from_alias(self, aliases, tmp_path):
        write(tmp_path / "src" / "plugin.py", "VALUE = 42\n")
        aliases.set_alias("loader_test_a", tmp_path / "src")

        module = load_module("loader_test_a.plugin")

        assert module.VALUE == 42

    def test_import_package_and_relative_import(self, aliases, tmp_path):
        write(tmp_path / "pkg" / "__init__.py", "from .helpers import answer\n")
        write(tmp_path / "pkg" / "helpers.py", "def answer():\n    return 42\n")
        aliases.set_alias("loader_test_b", tmp_path)

        module = load_module("loader_test_b.pkg")

        assert module.answer() == 42

    def test_dotted_alias_parents_are_namespaces(self, aliases, tmp_path):
        write(tmp_path / "plugin.py", "class Plugin:\n    pass\n")
        aliases.set_alias("loader_test_c.plugins.seo", tmp_path)

        cls = load_class("loader_test_c.plugins.seo.plugin:Plugin")

        assert cls.__name__ == "Plugin"
        assert "loader_test_c.plugins" in sys.modules

    def test_uninstall_purges_modules(self, tmp_path):
        write(tmp_path / "plugin.py", "VALUE = 1\n")
        registry = AliasRegistry()
        registry.install()
        registry.set_alias("loader_test_d", tmp_path)
        load_module("loader_test_d.plugin")

        registry.uninstall()

        assert "loader_test_d.plugin" not in sys.modules
        with pytest.raises(LoaderError):
            load_module("loader_test_d.plugin")

    def test_broken_module(self, aliases, tmp_path):
        write(tmp_path / "broken.py", "raise RuntimeError('boom')\n")
        aliases.set_alias("loader_test_e", tmp_path)

        with pytest.raises(LoaderError, match="boom"):
            load_module("loader_test_e.broken")

        assert "loader_test_e.broken" not in sys.modules


class TestLoadClass:
    """Test resolving class references."""

    def test_class_object(self):
        assert load_class(AliasRegistry) is AliasRegistry

    def test_colon_and_dotted_references(self):
        assert load_class("plughost.plugin.loader:AliasRegistry") is AliasRegistry
        assert load_class("plughost.plugin.loader.AliasRegistry") is AliasRegistry

    def test_missing_attribute(self):
        with pytest.raises(LoaderError, match="has no attribute"):
            load_class("plughost.plugin.loader:Missing")

    def test_not_a_class(self):
        with pytest.raises(LoaderError, match="not a class"):
            load_class("plughost.plugin.loader:load_class")

    @pytest.mark.parametrize("reference", ["", "NoModule", 42, None])
    def test_invalid_reference(self, reference):
        with pytest.raises(LoaderError):
            load_class(reference)


class TestHooks:
    """Test script hooks."""

    def test_no_hook(self, tmp_path):
        assert has_hook(tmp_path, HookType.INSTALL) is False
        assert execute_hook(tmp_path, HookType.INSTALL) is False

    def test_python_hook_receives_environment(self, tmp_path):
        write(
            tmp_path / "hooks" / "install.py",
            """
            import os
            from pathlib import Path

            Path("marker.txt").write_text(
                os.environ["PLUGHOST_HOOK_TYPE"] + ":" + os.environ["PLUGHOST_PLUGIN_HANDLE"]
            )
            """,
        )

        assert execute_hook(tmp_path, HookType.INSTALL, {"PLUGHOST_PLUGIN_HANDLE": "seo"}) is True
        assert (tmp_path / "marker.txt").read_text() == "install:seo"

    def test_failing_hook(self, tmp_path):
        write(tmp_path / "hooks" / "uninstall.py", "import sys\nsys.exit(3)\n")

        with pytest.raises(HookError, match="exit code 3"):
            execute_hook(tmp_path, HookType.UNINSTALL)

    def test_hook_timeout(self, tmp_path):
        write(tmp_path / "hooks" / "install.py", "import time\ntime.sleep(5)\n")

        with pytest.raises(HookError, match="timed out"):
            execute_hook(tmp_path, HookType.INSTALL, timeout=1)
