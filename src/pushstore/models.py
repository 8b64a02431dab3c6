"""Entities persisted by the storage layer.

Documents are stored with the camelCase field names used by the rest of the
deployment service; attributes on the Python side are snake_case. Fields left
as None are not written.
"""

import copy
import enum
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class _Document:
    """Mixin mapping dataclass fields to stored dictionaries."""

    # Attributes computed at read time, never persisted.
    _transient: tuple = ()
    # Overrides for stored names that are not plain camelCase.
    _stored_names: Dict[str, str] = {}

    @classmethod
    def _stored_name(cls, attr: str) -> str:
        return cls._stored_names.get(attr, _camel(attr))

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            if f.name in self._transient:
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            data[self._stored_name(f.name)] = copy.deepcopy(value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        kwargs = {}
        for f in fields(cls):
            stored = cls._stored_name(f.name)
            if stored in data:
                kwargs[f.name] = copy.deepcopy(data[stored])
        return cls(**kwargs)

    def clone(self):
        return copy.deepcopy(self)


class Permission(str, enum.Enum):
    OWNER = "Owner"
    COLLABORATOR = "Collaborator"


@dataclass
class Account(_Document):
    """Registered account holder."""

    email: str
    name: Optional[str] = None
    id: Optional[str] = None
    created_time: Optional[int] = None
    github_id: Optional[str] = None
    microsoft_id: Optional[str] = None
    azure_ad_id: Optional[str] = None

    _stored_names = {"github_id": "gitHubId"}


@dataclass
class CollaboratorProperties(_Document):
    account_id: str
    permission: Permission
    is_current_account: bool = False

    _transient = ("is_current_account",)

    def to_dict(self) -> Dict[str, Any]:
        return {"accountId": self.account_id, "permission": Permission(self.permission).value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollaboratorProperties":
        return cls(account_id=data["accountId"], permission=Permission(data["permission"]))


CollaboratorMap = Dict[str, CollaboratorProperties]


@dataclass
class App(_Document):
    """Application with its collaborator map keyed by email."""

    name: str
    id: Optional[str] = None
    created_time: Optional[int] = None
    collaborators: CollaboratorMap = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["collaborators"] = {
            email: props.to_dict() for email, props in self.collaborators.items()
        }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "App":
        app = super().from_dict({k: v for k, v in data.items() if k != "collaborators"})
        app.collaborators = {
            email: CollaboratorProperties.from_dict(props)
            for email, props in (data.get("collaborators") or {}).items()
        }
        return app

    def find_collaborator(self, account_id: str) -> Optional[CollaboratorProperties]:
        for props in self.collaborators.values():
            if props.account_id == account_id:
                return props
        return None

    def owner_email(self) -> Optional[str]:
        for email, props in self.collaborators.items():
            if props.permission == Permission.OWNER:
                return email
        return None


@dataclass
class AppPointer(_Document):
    """Reverse index entry: account -> app it collaborates on."""

    app_id: str
    account_id: str

    @property
    def key(self) -> str:
        return pointer_key(self.account_id, self.app_id)


def pointer_key(account_id: str, app_id: str) -> str:
    return f"{account_id}:{app_id}"


@dataclass
class Package(_Document):
    """One release in a deployment's history."""

    label: Optional[str] = None
    released_by: Optional[str] = None
    rollout: Optional[int] = None
    app_version: Optional[str] = None
    description: Optional[str] = None
    is_disabled: Optional[bool] = None
    is_mandatory: Optional[bool] = None
    package_hash: Optional[str] = None
    blob_url: Optional[str] = None
    manifest_blob_url: Optional[str] = None
    size: Optional[int] = None
    upload_time: Optional[int] = None
    release_method: Optional[str] = None
    original_label: Optional[str] = None
    original_deployment: Optional[str] = None
    diff_package_map: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        # rollout is cleared to an explicit null on superseded releases
        data["rollout"] = self.rollout
        return data


@dataclass
class Deployment(_Document):
    """Deployment of an app, addressable globally by its key."""

    name: Optional[str] = None
    key: Optional[str] = None
    id: Optional[str] = None
    created_time: Optional[int] = None
    package: Optional[Package] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.package is not None:
            data["package"] = self.package.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Deployment":
        deployment = super().from_dict({k: v for k, v in data.items() if k != "package"})
        if data.get("package"):
            deployment.package = Package.from_dict(data["package"])
        return deployment


@dataclass
class DeploymentInfo(_Document):
    """Key index entry: deployment key -> owning app and deployment id."""

    app_id: str
    deployment_id: str


@dataclass
class AccessKey(_Document):
    """API access key; `expires` and `created_time` are epoch milliseconds."""

    name: str
    friendly_name: Optional[str] = None
    description: Optional[str] = None
    expires: Optional[int] = None
    is_session: Optional[bool] = None
    id: Optional[str] = None
    created_by: Optional[str] = None
    created_time: Optional[int] = None


def packages_from_json(items: List[Dict[str, Any]]) -> List[Package]:
    return [Package.from_dict(item) for item in items]


def packages_to_json(history: List[Package]) -> List[Dict[str, Any]]:
    return [pkg.to_dict() for pkg in history]
