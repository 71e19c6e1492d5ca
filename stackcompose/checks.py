"""Conflict checkers run once every selected service has compiled.

Each checker is a pure function of ``(working_document, build_options,
service_name)`` and returns a list of ``Issue``. Conflicts are data: nothing
here raises for a detected problem, only for input it cannot read.
"""

from __future__ import annotations

import logging
from typing import List

from .compile_logic import published_host_ports, requested_host_port, split_port_mapping
from .models import BuildOptions, Issue, IssueKind, OptionDescriptor, WorkingDocument

logger = logging.getLogger(__name__)


def _service_order(working_document: WorkingDocument, build_options: BuildOptions) -> List[str]:
    order = [name for name in dict.fromkeys(build_options.selected_services) if name in working_document.services]
    order.extend(name for name in working_document.services if name not in order)
    return order


def _published_ports(block: dict, service_name: str, strict: bool) -> List[str]:
    """Host ports published by ``block``.

    With ``strict`` an unreadable entry raises; otherwise it is logged and
    left out, so one service's bad block cannot fail another service's check.
    """

    published: List[str] = []
    for mapping in block.get("ports") or []:
        try:
            published.extend(published_host_ports(mapping))
        except ValueError:
            if strict:
                raise
            logger.warning("Ignoring unreadable port mapping %r of service '%s'", mapping, service_name)
    return published


def check_port_conflicts(
    working_document: WorkingDocument,
    build_options: BuildOptions,
    service_name: str,
) -> List[Issue]:
    """Report host ports this service shares with any other compiled service.

    A colliding pair is reported only by whichever member comes first in the
    selection, so checking every service yields one issue per pair.
    """

    if service_name not in working_document.services:
        return []

    order = _service_order(working_document, build_options)
    own_ports = set(_published_ports(working_document.services[service_name], service_name, strict=True))
    own_index = order.index(service_name)
    issues: List[Issue] = []
    for index, other in enumerate(order):
        if index <= own_index:
            continue
        shared = sorted(own_ports & set(_published_ports(working_document.services[other], other, strict=False)))
        if not shared:
            continue
        issues.append(
            Issue(
                component=f"check_port_conflicts - '{service_name}'",
                kind=IssueKind.PORT_CONFLICT,
                message=f"Services '{service_name}' and '{other}' both publish host port(s) {', '.join(shared)}",
                affected_services=(service_name, other),
                details={"ports": shared},
            )
        )
    return issues


def check_network_conflicts(
    working_document: WorkingDocument,
    build_options: BuildOptions,
    service_name: str,
) -> List[Issue]:
    """Report the first network-mode incompatibility found, if any.

    Unlike the port checker this stops at one finding per service.
    """

    if service_name not in working_document.services:
        return []

    block = working_document.services[service_name]
    mode = block.get("network_mode")
    component = f"check_network_conflicts - '{service_name}'"

    if mode in ("none", "host") and block.get("networks"):
        return [
            Issue(
                component=component,
                kind=IssueKind.NETWORK_CONFLICT,
                message=f"Service '{service_name}' uses network_mode '{mode}' but is attached to networks "
                f"{', '.join(block['networks'])}",
                affected_services=(service_name,),
                details={"network_mode": mode, "networks": list(block["networks"])},
            )
        ]

    if mode == "none" and block.get("ports"):
        return [
            Issue(
                component=component,
                kind=IssueKind.NETWORK_CONFLICT,
                message=f"Service '{service_name}' has networking disabled but publishes ports "
                f"{', '.join(block['ports'])}",
                affected_services=(service_name,),
                details={"network_mode": mode, "ports": list(block["ports"])},
            )
        ]

    if mode == "host":
        order = _service_order(working_document, build_options)
        host_services = [name for name in order if working_document.services[name].get("network_mode") == "host"]
        if len(host_services) > 1 and host_services[0] == service_name:
            return [
                Issue(
                    component=component,
                    kind=IssueKind.NETWORK_CONFLICT,
                    message=f"Services {', '.join(repr(name) for name in host_services)} all claim host networking",
                    affected_services=tuple(host_services),
                    details={"network_mode": mode},
                )
            ]

    return []


def check_dependency_services(
    working_document: WorkingDocument,
    build_options: BuildOptions,
    service_name: str,
) -> List[Issue]:
    if service_name not in working_document.services:
        return []

    selected = set(build_options.selected_services)
    issues: List[Issue] = []
    for dependency in working_document.services[service_name].get("depends_on") or []:
        if dependency in selected:
            continue
        issues.append(
            Issue(
                component=f"check_dependency_services - '{service_name}'",
                kind=IssueKind.MISSING_DEPENDENCY,
                message=f"Service '{service_name}' requires '{dependency}', which is not selected",
                affected_services=(service_name, dependency),
                details={"missing": dependency},
            )
        )
    return issues


def check_unsupported_options(
    working_document: WorkingDocument,
    build_options: BuildOptions,
    service_name: str,
    descriptor: OptionDescriptor,
) -> List[Issue]:
    """Report every requested option that compile dropped for this service."""

    options = build_options.for_service(service_name)
    component = f"check_unsupported_options - '{service_name}'"
    rejected: List[tuple] = []

    for declared, wanted in (options.ports or {}).items():
        if declared not in descriptor.labeled_ports:
            rejected.append(("ports", declared, f"port '{declared}' is not configurable"))
            continue
        _, container = split_port_mapping(declared)
        if requested_host_port(wanted, container) is None:
            rejected.append(("ports", wanted, f"remap '{wanted}' does not target container port {container}"))

    if options.logging_enabled is not None and not descriptor.logging:
        rejected.append(("logging_enabled", options.logging_enabled, "logging is not configurable"))
    if options.network_mode is not None and not descriptor.networks:
        rejected.append(("network_mode", options.network_mode, "network mode is not configurable"))
    if options.networks is not None and not descriptor.networks:
        rejected.append(("networks", options.networks, "networks are not configurable"))
    if options.image_tag is not None and options.image_tag not in descriptor.image_tags:
        rejected.append(("image_tag", options.image_tag, f"image tag '{options.image_tag}' is not offered"))
    allowed_environment = descriptor.environment_defaults
    for key in options.environment or {}:
        if key not in allowed_environment:
            rejected.append(("environment", key, f"environment variable '{key}' is not configurable"))

    return [
        Issue(
            component=component,
            kind=IssueKind.UNSUPPORTED_OPTION,
            message=f"Service '{service_name}': {reason}; the request was ignored",
            affected_services=(service_name,),
            details={"option": option, "value": value},
        )
        for option, value, reason in rejected
    ]
