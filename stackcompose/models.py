from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import load_document


@dataclass
class ServiceOptions:
    """User choices for one service. ``None`` means the option was not requested."""

    ports: Optional[Dict[str, str]] = None
    logging_enabled: Optional[bool] = None
    network_mode: Optional[str] = None
    networks: Optional[List[str]] = None
    image_tag: Optional[str] = None
    environment: Optional[Dict[str, str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceOptions":
        ports = data.get("ports")
        networks = data.get("networks")
        environment = data.get("environment")
        return cls(
            ports={str(k): str(v) for k, v in ports.items()} if ports is not None else None,
            logging_enabled=data.get("logging_enabled"),
            network_mode=data.get("network_mode"),
            networks=list(networks) if networks is not None else None,
            image_tag=data.get("image_tag"),
            environment={str(k): str(v) for k, v in environment.items()} if environment is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("ports", self.ports),
                ("logging_enabled", self.logging_enabled),
                ("network_mode", self.network_mode),
                ("networks", self.networks),
                ("image_tag", self.image_tag),
                ("environment", self.environment),
            )
            if value is not None
        }


@dataclass
class BuildOptions:
    """Selection plus per-service options for one pipeline run."""

    selected_services: List[str] = field(default_factory=list)
    services: Dict[str, ServiceOptions] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildOptions":
        services = {
            name: ServiceOptions.from_dict(entry or {})
            for name, entry in (data.get("services") or {}).items()
        }
        return cls(
            selected_services=list(dict.fromkeys(data.get("selected_services") or [])),
            services=services,
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "BuildOptions":
        return cls.from_dict(load_document(path))

    def for_service(self, service_name: str) -> ServiceOptions:
        return self.services.get(service_name) or ServiceOptions()

    def with_service_options(self, service_name: str, options: ServiceOptions) -> "BuildOptions":
        services = dict(self.services)
        services[service_name] = options
        return replace(self, services=services)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected_services": list(self.selected_services),
            "services": {name: opts.to_dict() for name, opts in self.services.items()},
        }


@dataclass
class OptionDescriptor:
    """Static declaration of the configuration dimensions a service accepts."""

    service_name: str
    labeled_ports: Dict[str, str] = field(default_factory=dict)
    modifyable_environment: List[Dict[str, str]] = field(default_factory=list)
    volumes: bool = False
    networks: bool = False
    logging: bool = False
    image_tags: List[str] = field(default_factory=list)

    @property
    def environment_defaults(self) -> Dict[str, str]:
        return {entry["key"]: entry["value"] for entry in self.modifyable_environment}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "labeled_ports": dict(self.labeled_ports),
            "modifyable_environment": [dict(entry) for entry in self.modifyable_environment],
            "volumes": self.volumes,
            "networks": self.networks,
            "logging": self.logging,
            "image_tags": list(self.image_tags),
        }


@dataclass
class ServiceHelp:
    service_name: str
    website: str = ""
    raw_markdown_remote: str = ""
    raw_markdown_local: str = ""
    online_rendered: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "website": self.website,
            "raw_markdown_remote": self.raw_markdown_remote,
            "raw_markdown_local": self.raw_markdown_local,
            "online_rendered": self.online_rendered,
        }


@dataclass
class ServiceMeta:
    service_name: str
    display_name: str
    service_type_tags: List[str] = field(default_factory=list)
    icon_uri: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "display_name": self.display_name,
            "service_type_tags": list(self.service_type_tags),
            "icon_uri": self.icon_uri,
        }


@dataclass
class WorkingDocument:
    """The compose document being assembled, one block per service.

    Blocks are mutated in place by compile. The document itself is never
    swapped out during a run.
    """

    version: str = "3.6"
    services: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def ensure_service(self, service_name: str, base_block: Dict[str, Any]) -> Dict[str, Any]:
        if service_name not in self.services:
            self.services[service_name] = copy.deepcopy(base_block)
        return self.services[service_name]

    def service_block(self, service_name: str) -> Dict[str, Any]:
        return self.services[service_name]

    def network_names(self) -> List[str]:
        names: List[str] = []
        for block in self.services.values():
            for network in block.get("networks") or []:
                if network not in names:
                    names.append(network)
        return names

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "version": self.version,
            "services": copy.deepcopy(self.services),
        }
        networks = self.network_names()
        if networks:
            document["networks"] = {name: {"driver": "bridge"} for name in networks}
        return document


class IssueKind(str, Enum):
    PORT_CONFLICT = "port_conflict"
    NETWORK_CONFLICT = "network_conflict"
    MISSING_DEPENDENCY = "missing_dependency"
    UNSUPPORTED_OPTION = "unsupported_option"
    INIT_FAILURE = "init_failure"
    COMPILE_FAILURE = "compile_failure"
    ISSUES_FAILURE = "issues_failure"
    ASSUME_FAILURE = "assume_failure"
    BUILD_FAILURE = "build_failure"


@dataclass
class Issue:
    """A non-fatal finding. Conflicts are reported as data, not raised."""

    component: str
    kind: IssueKind
    message: str
    affected_services: Tuple[str, ...] = ()
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component": self.component,
            "kind": self.kind.value,
            "message": self.message,
            "affected_services": list(self.affected_services),
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Issue":
        return cls(
            component=data.get("component", ""),
            kind=IssueKind(data["kind"]),
            message=data.get("message", ""),
            affected_services=tuple(data.get("affected_services", [])),
            details=data.get("details", {}),
        )


@dataclass
class ScriptFragment:
    service_name: str
    comment: str
    code: str
    multiline_comment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "comment": self.comment,
            "multiline_comment": self.multiline_comment,
            "code": self.code,
        }


@dataclass(frozen=True)
class ZipEntry:
    full_path: Path
    zip_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"full_path": str(self.full_path), "zip_name": self.zip_name}


@dataclass
class PhaseResult:
    """Summary returned by a successful compile or build call."""

    phase: str
    service_name: str
    kind: str = "service"
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "phase": self.phase,
            "service": self.service_name,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhaseResult":
        return cls(
            phase=data.get("phase", ""),
            service_name=data.get("service", ""),
            kind=data.get("kind", "service"),
            details=data.get("details", {}),
        )


@dataclass
class BuildManifest:
    """Everything a pipeline run hands over to the packager."""

    document: Dict[str, Any]
    issues: List[Issue] = field(default_factory=list)
    prebuild_scripts: List[ScriptFragment] = field(default_factory=list)
    postbuild_scripts: List[ScriptFragment] = field(default_factory=list)
    zip_list: List[ZipEntry] = field(default_factory=list)
    failures: List[Dict[str, Any]] = field(default_factory=list)
    states: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document": self.document,
            "issues": [issue.to_dict() for issue in self.issues],
            "prebuild_scripts": [fragment.to_dict() for fragment in self.prebuild_scripts],
            "postbuild_scripts": [fragment.to_dict() for fragment in self.postbuild_scripts],
            "zip_list": [entry.to_dict() for entry in self.zip_list],
            "failures": list(self.failures),
            "states": dict(self.states),
        }
