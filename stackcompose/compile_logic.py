"""Pure merge functions applying one service's options onto its compose block.

Each merge takes ``(block, requested, descriptor)`` and returns a new block.
Requests the descriptor does not allow are dropped here without complaint;
``checks.check_unsupported_options`` reports them later.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .models import OptionDescriptor, ServiceOptions

logger = logging.getLogger(__name__)

Block = Dict[str, Any]

NETWORK_MODES = ("none", "host", "bridge")
_PORT_RE = re.compile(r"^(?P<host>\d{1,5}):(?P<container>\d{1,5}(?:/(?:tcp|udp))?)$")
_HOST_PORT_RE = re.compile(r"^\d{1,5}$")
# Compose short syntax: [[ip:][host]:]container[/proto], host and container may be ranges.
_PUBLISHED_RE = re.compile(
    r"^(?:(?:(?P<ip>\d{1,3}(?:\.\d{1,3}){3}|\[[0-9A-Fa-f:.]+\]):)?(?P<host>\d{1,5}(?:-\d{1,5})?)?:)?"
    r"(?P<container>\d{1,5}(?:-\d{1,5})?)(?:/(?P<protocol>tcp|udp))?$"
)


def split_port_mapping(mapping: str) -> Tuple[str, str]:
    """Split ``"host:container[/proto]"`` into its host and container parts."""

    match = _PORT_RE.match(str(mapping).strip())
    if not match:
        raise ValueError(f"Malformed port mapping: {mapping!r}")
    return match.group("host"), match.group("container")


def _parse_published(mapping: Any) -> re.Match:
    match = _PUBLISHED_RE.match(str(mapping).strip())
    if not match:
        raise ValueError(f"Malformed port mapping: {mapping!r}")
    return match


def container_port(mapping: Any) -> str:
    """Container side of any short-syntax mapping, keeping an explicit protocol."""

    match = _parse_published(mapping)
    protocol = match.group("protocol")
    return f"{match.group('container')}/{protocol}" if protocol else match.group("container")


def published_host_ports(mapping: Any) -> List[str]:
    """Host ports a short-syntax mapping claims, with ``/udp`` appended for UDP.

    The bind address is ignored. A mapping without a host part lets docker
    choose the port and claims nothing.
    """

    match = _parse_published(mapping)
    host = match.group("host")
    if not host:
        return []
    start, _, end = host.partition("-")
    first, last = int(start), int(end or start)
    if not 0 < first <= last <= 65535:
        raise ValueError(f"Malformed port range in {mapping!r}")
    suffix = "/udp" if match.group("protocol") == "udp" else ""
    return [f"{port}{suffix}" for port in range(first, last + 1)]


def requested_host_port(requested: str, container: str) -> Optional[str]:
    requested = str(requested).strip()
    if _HOST_PORT_RE.match(requested):
        return requested
    host, requested_container = split_port_mapping(requested)
    if requested_container != container:
        return None
    return host


def merge_ports(block: Block, requested: Optional[Mapping[str, str]], descriptor: OptionDescriptor) -> Block:
    new_block = copy.deepcopy(block)
    if not requested:
        return new_block

    ports: List[str] = list(new_block.get("ports") or [])
    for declared, wanted in requested.items():
        if declared not in descriptor.labeled_ports:
            continue
        _, container = split_port_mapping(declared)
        host = requested_host_port(wanted, container)
        if host is None:
            continue
        mapping = f"{host}:{container}"
        for index, existing in enumerate(ports):
            if container_port(existing) == container:
                ports[index] = mapping
                break
        else:
            ports.append(mapping)
    if ports or "ports" in new_block:
        new_block["ports"] = ports
    return new_block


def merge_logging(block: Block, enabled: Optional[bool], descriptor: OptionDescriptor) -> Block:
    new_block = copy.deepcopy(block)
    if enabled is None or not descriptor.logging:
        return new_block
    if enabled:
        new_block.pop("logging", None)
    else:
        new_block["logging"] = {"driver": "none"}
    return new_block


def merge_network_mode(block: Block, mode: Optional[str], descriptor: OptionDescriptor) -> Block:
    new_block = copy.deepcopy(block)
    if mode is None or not descriptor.networks:
        return new_block
    if mode not in NETWORK_MODES:
        raise ValueError(f"Unknown network mode {mode!r}, expected one of {', '.join(NETWORK_MODES)}")
    if mode == "bridge":
        new_block.pop("network_mode", None)
    else:
        new_block["network_mode"] = mode
    return new_block


def merge_networks(block: Block, networks: Optional[List[str]], descriptor: OptionDescriptor) -> Block:
    new_block = copy.deepcopy(block)
    if networks is None or not descriptor.networks:
        return new_block
    for name in networks:
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"Invalid network name: {name!r}")
    if networks:
        new_block["networks"] = list(dict.fromkeys(networks))
    else:
        new_block.pop("networks", None)
    return new_block


def merge_environment(block: Block, environment: Optional[Mapping[str, str]], descriptor: OptionDescriptor) -> Block:
    new_block = copy.deepcopy(block)
    if not environment:
        return new_block
    allowed = descriptor.environment_defaults
    accepted = {key: str(value) for key, value in environment.items() if key in allowed}
    if not accepted:
        return new_block

    current = new_block.get("environment") or {}
    if isinstance(current, list):
        current = dict(entry.split("=", 1) if "=" in entry else (entry, "") for entry in current)
    current = dict(current)
    current.update(accepted)
    new_block["environment"] = current
    return new_block


def merge_image_tag(block: Block, tag: Optional[str], descriptor: OptionDescriptor) -> Block:
    new_block = copy.deepcopy(block)
    if tag is None or tag not in descriptor.image_tags or not new_block.get("image"):
        return new_block
    image = new_block["image"]
    repository = image
    if ":" in image.rsplit("/", 1)[-1]:
        repository = image.rsplit(":", 1)[0]
    new_block["image"] = f"{repository}:{tag}"
    return new_block


_MERGES: Tuple[Tuple[str, str, Callable[[Block, Any, OptionDescriptor], Block]], ...] = (
    ("modified_ports", "ports", merge_ports),
    ("modified_logging", "logging_enabled", merge_logging),
    ("modified_network_mode", "network_mode", merge_network_mode),
    ("modified_networks", "networks", merge_networks),
    ("modified_environment", "environment", merge_environment),
    ("modified_image_tag", "image_tag", merge_image_tag),
)


def apply_service_options(
    block: Block,
    options: ServiceOptions,
    descriptor: OptionDescriptor,
) -> Tuple[Block, Dict[str, bool]]:
    """Run every merge in turn and report which ones changed the block."""

    changes: Dict[str, bool] = {}
    for result_key, option_name, merge in _MERGES:
        merged = merge(block, getattr(options, option_name), descriptor)
        changes[result_key] = merged != block
        block = merged
    logger.debug("Merge results for '%s': %s", descriptor.service_name, changes)
    return block, changes
