"""Tests for target cloud resolution."""

from winnie.core.resolver import Disambiguation, resolve


class TestResolve:
    """Test the resolve function."""

    def test_explicit_target_wins(self):
        """Test an explicit target ignores the manifest."""
        assert resolve([], "bar") == "bar"
        assert resolve(["foo"], "bar") == "bar"
        assert resolve(["foo", "baz"], "bar") == "bar"

    def test_single_cloud(self):
        assert resolve(["foo-production"]) == "foo-production"

    def test_empty_manifest(self):
        """Test no clouds asks for an explicit target."""
        result = resolve([])

        assert result == Disambiguation()
        assert not result.multiple

    def test_many_clouds(self):
        """Test many clouds are listed, never guessed."""
        result = resolve(["foo-production", "foo-staging"])

        assert isinstance(result, Disambiguation)
        assert result.multiple
        assert result.candidates == ("foo-production", "foo-staging")
