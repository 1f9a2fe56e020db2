"""Domain objects returned by and sent to the Winnie Cloud API."""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


DATABASE_CHOICES = ("postgresql", "mysql", "mongodb", "redis", "none")
DEFAULT_DATABASES = ("postgresql",)
SIZES = ("small", "large")
REGIONS = ("EU", "NA")


@dataclass(frozen=True)
class Region:
    """Place a cloud in a region; the platform picks the zone."""

    name: str

    flag = "region"


@dataclass(frozen=True)
class Zone:
    """Place a cloud in one specific zone."""

    name: str

    flag = "zone"


Placement = Union[Region, Zone]


@dataclass(frozen=True)
class Cloud:
    """Snapshot of one cloud, valid for a single command."""

    code_name: str
    organization_name: Optional[str] = None
    placement: Optional[Placement] = None
    databases: Tuple[str, ...] = ()
    size: str = "small"
    state: Optional[str] = None
    state_description: Optional[str] = None
    maintenance: bool = False
    git_url: Optional[str] = None
    web_server_ip: Tuple[str, ...] = ()
    git_info: Dict[str, Any] = field(default_factory=dict)
    credit: float = 0
    details_present: bool = True

    def __post_init__(self) -> None:
        if not self.code_name:
            raise ValueError("Cloud code name cannot be empty")
        if self.size not in SIZES:
            raise ValueError(f"Unsupported size: {self.size}. Supported: {list(SIZES)}")

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Cloud":
        """Build a snapshot from an API response body."""
        placement: Optional[Placement] = None
        if data.get("zone"):
            placement = Zone(data["zone"])
        elif data.get("region"):
            placement = Region(data["region"])

        organization = data.get("organization") or {}
        git_info = data.get("git_info") or {}
        web_server_ip = data.get("web_server_ip") or ()
        if isinstance(web_server_ip, str):
            web_server_ip = (web_server_ip,)

        return cls(
            code_name=data["code_name"],
            organization_name=organization.get("name") or data.get("organization_name"),
            placement=placement,
            databases=tuple(data.get("databases") or ()),
            size=data.get("size") or "small",
            state=data.get("state"),
            state_description=data.get("state_description") or data.get("state"),
            maintenance=bool(data.get("maintenance", False)),
            git_url=git_info.get("repository_url"),
            web_server_ip=tuple(web_server_ip),
            git_info=git_info,
            credit=organization.get("credit") or 0,
            details_present=organization.get("details_present", True),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Attributes submitted when creating the cloud."""
        if self.placement is None:
            raise ValueError("Cloud placement (region or zone) must be set")
        return {
            "code_name": self.code_name,
            "organization_name": self.organization_name,
            "databases": list(self.databases),
            "size": self.size,
            self.placement.flag: self.placement.name,
        }

    @property
    def deploy_failed(self) -> bool:
        return self.state == "deploy_failed" and not self.maintenance


@dataclass(frozen=True)
class Organization:
    """Billing and ownership group that clouds belong to."""

    name: str
    credit: float = 0
    details_present: bool = True
    apps: Tuple[Cloud, ...] = ()

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Organization":
        return cls(
            name=data["name"],
            credit=data.get("credit") or 0,
            details_present=data.get("details_present", True),
            apps=tuple(Cloud.from_api(app) for app in data.get("apps") or ()),
        )


@dataclass(frozen=True)
class Deployment:
    """One start, stop or redeploy operation as last observed."""

    id: str
    state: str
    messages: Tuple[str, ...] = ()
    result: Optional[str] = None

    @classmethod
    def from_api(cls, deployment_id: str, data: Dict[str, Any]) -> "Deployment":
        return cls(
            id=str(data.get("id") or deployment_id),
            state=data.get("state") or "running",
            messages=tuple(data.get("messages") or ()),
            result=data.get("result"),
        )

    @property
    def is_terminal(self) -> bool:
        return self.state != "running"

    @property
    def succeeded(self) -> bool:
        return self.is_terminal and self.result == "success"


@dataclass(frozen=True)
class Backup:
    """A database backup stored for a cloud."""

    filename: str
    kind: Optional[str] = None
    size: int = 0
    human_size: Optional[str] = None
    code_name: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Backup":
        return cls(
            filename=data["filename"],
            kind=data.get("kind"),
            size=data.get("size") or 0,
            human_size=data.get("human_size"),
            code_name=data.get("code_name"),
            state=data.get("state"),
        )


@dataclass(frozen=True)
class Member:
    """A user's membership in an organization."""

    email: str
    owner: bool = False
    active: bool = True

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Member":
        return cls(
            email=data["email"],
            owner=bool(data.get("owner", False)),
            active=bool(data.get("active", True)),
        )


def parse_databases(raw: str) -> Optional[List[str]]:
    """Parse a comma/space separated database list.

    Returns the selected kinds (empty when ``none`` appears anywhere) or
    None when any token is not a supported kind.
    """
    tokens = [token for token in raw.replace(",", " ").split() if token]
    if any(token not in DATABASE_CHOICES for token in tokens):
        return None
    if "none" in tokens:
        return []
    selected: List[str] = []
    for token in tokens:
        if token not in selected:
            selected.append(token)
    return selected


def code_name_from_directory(directory: str) -> str:
    """Suggested code name for a project, e.g. ``/src/My App`` -> ``my-app-production``."""
    base = re.sub(r"[^a-z0-9]+", "-", os.path.basename(os.path.abspath(directory)).lower()).strip("-")
    return f"{base or 'cloud'}-production"
