"""The project-local Cloudfile listing the clouds of a project."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.models import Cloud


class CloudfileError(Exception):
    """Raised when the Cloudfile cannot be read or written."""
    pass


class Cloudfile:
    """YAML manifest in the project root, one top-level key per cloud.

    Example::

        foo-production:
          region: EU
          servers:
            app1:
              size: small
              databases:
              - postgresql
    """

    FILENAME = "Cloudfile"

    def __init__(self, directory: Optional[str] = None) -> None:
        self.path = Path(directory or os.getcwd()) / self.FILENAME

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Dict[str, Any]:
        """Parsed Cloudfile content ({} when there is no Cloudfile).

        Raises:
            CloudfileError: If the file is not a valid Cloudfile
        """
        if not self.path.exists():
            return {}
        try:
            content = yaml.safe_load(self.path.read_text())
        except (OSError, yaml.YAMLError) as e:
            raise CloudfileError(f"Failed to load {self.path}: {e}")
        if content is None:
            return {}
        if not isinstance(content, dict):
            raise CloudfileError(f"Failed to load {self.path}: expected a mapping of clouds")
        return content

    def clouds(self) -> List[str]:
        """Code names declared in the Cloudfile, sorted."""
        return sorted(str(code_name) for code_name in self.load())

    @staticmethod
    def generate(cloud: Cloud) -> Dict[str, Any]:
        """Cloudfile section for a newly created cloud."""
        section: Dict[str, Any] = {}
        if cloud.placement is not None:
            section[cloud.placement.flag] = cloud.placement.name
        section["servers"] = {
            "app1": {
                "size": cloud.size,
                "databases": list(cloud.databases),
            }
        }
        return section

    def add(self, cloud: Cloud) -> None:
        """Add or replace the cloud's section, rewriting the whole file."""
        content = self.load()
        content[cloud.code_name] = self.generate(cloud)
        self.write(content)

    def write(self, content: Dict[str, Any]) -> None:
        temp_path = self.path.with_name(self.FILENAME + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(content, default_flow_style=False, sort_keys=False))
            temp_path.replace(self.path)
        except OSError as e:
            raise CloudfileError(f"Failed to save {self.path}: {e}")
