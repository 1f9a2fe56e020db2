"""Tests for the Cloudfile."""

import pytest
import yaml

from winnie.core.models import Cloud, Region, Zone
from winnie.utils.cloudfile import Cloudfile, CloudfileError


class TestCloudfile:
    """Test the Cloudfile class."""

    def test_missing_file(self, tmp_path):
        cloudfile = Cloudfile(str(tmp_path))

        assert not cloudfile.exists()
        assert cloudfile.load() == {}
        assert cloudfile.clouds() == []

    def test_empty_file(self, tmp_path):
        (tmp_path / "Cloudfile").write_text("")

        assert Cloudfile(str(tmp_path)).clouds() == []

    def test_clouds_sorted(self, tmp_path):
        (tmp_path / "Cloudfile").write_text("foo-staging:\n  region: EU\nfoo-production:\n  region: EU\n")

        assert Cloudfile(str(tmp_path)).clouds() == ["foo-production", "foo-staging"]

    @pytest.mark.parametrize("content", ["foo: [unclosed", "- foo\n- bar\n"])
    def test_invalid_content(self, tmp_path, content):
        """Test unparseable or non-mapping content is rejected."""
        (tmp_path / "Cloudfile").write_text(content)

        with pytest.raises(CloudfileError, match="Failed to load"):
            Cloudfile(str(tmp_path)).load()

    def test_generate_region(self):
        cloud = Cloud("foo-production", placement=Region("EU"), databases=("postgresql", "redis"), size="large")

        assert Cloudfile.generate(cloud) == {
            "region": "EU",
            "servers": {"app1": {"size": "large", "databases": ["postgresql", "redis"]}},
        }

    def test_generate_zone(self):
        cloud = Cloud("foo-production", placement=Zone("eu-1c"))

        section = Cloudfile.generate(cloud)

        assert section["zone"] == "eu-1c"
        assert "region" not in section
        assert section["servers"]["app1"]["databases"] == []

    def test_add_keeps_other_clouds(self, tmp_path):
        """Test adding a cloud preserves the existing sections."""
        (tmp_path / "Cloudfile").write_text("foo-staging:\n  region: NA\n")
        cloudfile = Cloudfile(str(tmp_path))

        cloudfile.add(Cloud("foo-production", placement=Region("EU"), databases=("mysql",)))

        content = yaml.safe_load((tmp_path / "Cloudfile").read_text())
        assert content["foo-staging"] == {"region": "NA"}
        assert content["foo-production"]["servers"]["app1"]["databases"] == ["mysql"]
        assert cloudfile.clouds() == ["foo-production", "foo-staging"]
        assert not (tmp_path / "Cloudfile.tmp").exists()

    def test_add_replaces_same_cloud(self, tmp_path):
        cloudfile = Cloudfile(str(tmp_path))

        cloudfile.add(Cloud("foo-production", placement=Region("EU"), size="small"))
        cloudfile.add(Cloud("foo-production", placement=Region("NA"), size="large"))

        content = cloudfile.load()
        assert list(content) == ["foo-production"]
        assert content["foo-production"]["region"] == "NA"

    def test_write_failure(self, tmp_path):
        cloudfile = Cloudfile(str(tmp_path / "missing"))

        with pytest.raises(CloudfileError, match="Failed to save"):
            cloudfile.write({"foo": {}})
