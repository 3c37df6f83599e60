"""
Unit tests for settings providers.
"""

from pathlib import Path

from vcr.settings import DictSettings, TomlSettings


class TestDictSettings:
    """Tests for in-memory settings."""

    def test_dotted_lookup(self) -> None:
        settings = DictSettings({"user": {"name": "ada"}})
        assert settings.get("user.name") == "ada"

    def test_missing_key_returns_default(self) -> None:
        settings = DictSettings({"user": {"name": "ada"}})
        assert settings.get("user.email") is None
        assert settings.get("core.editor", "vi") == "vi"

    def test_lookup_through_scalar(self) -> None:
        """Test that a scalar in the middle of a key path yields the default."""
        settings = DictSettings({"user": "ada"})
        assert settings.get("user.name", "x") == "x"


class TestTomlSettings:
    """Tests for TOML-backed settings."""

    def test_reads_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "config"
        path.write_text('[user]\nname = "grace"\n', encoding="utf-8")

        assert TomlSettings(path).get("user.name") == "grace"

    def test_missing_file(self, tmp_path: Path) -> None:
        assert TomlSettings(tmp_path / "absent").get("user.name") is None

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config"
        path.touch()
        assert TomlSettings(path).load() == {}

    def test_invalid_toml_yields_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config"
        path.write_text("[user\nname = ", encoding="utf-8")

        assert TomlSettings(path).get("user.name", "fallback") == "fallback"

    def test_edits_are_picked_up(self, tmp_path: Path) -> None:
        """Test that the file is re-read on each lookup."""
        path = tmp_path / "config"
        path.write_text('[user]\nname = "one"\n', encoding="utf-8")
        settings = TomlSettings(path)
        assert settings.get("user.name") == "one"

        path.write_text('[user]\nname = "two"\n', encoding="utf-8")
        assert settings.get("user.name") == "two"
