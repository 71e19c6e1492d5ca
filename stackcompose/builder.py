"""Service template interface and the guarded four-phase builder.

Order of phases for every service:
    1. compile() - merges build options into the working document.
    2. issues()  - runs checks on the compiled document.
    3. assume()  - injects defaults the user left out; the pipeline recompiles
                   the service when new options come back. Optional.
    4. build()   - adds static files to the zip list and shell fragments to
                   the pre/post-build scripts.
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Type

import yaml

from .checks import (
    check_dependency_services,
    check_network_conflicts,
    check_port_conflicts,
    check_unsupported_options,
)
from .compile_logic import apply_service_options
from .config import Settings
from .errors import AssumeError, BuildError, CompileError, InitError, PhaseError, ValidationFault
from .models import (
    BuildOptions,
    Issue,
    OptionDescriptor,
    PhaseResult,
    ScriptFragment,
    ServiceHelp,
    ServiceMeta,
    WorkingDocument,
    ZipEntry,
)

logger = logging.getLogger(__name__)


def _snapshot_value(value: Any) -> Any:
    if isinstance(value, WorkingDocument):
        return value.snapshot()
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [_snapshot_value(item) for item in value]
    if isinstance(value, Path):
        return str(value)
    return value


def guarded_phase(error_cls: Type[PhaseError]) -> Callable:
    """Turn any unexpected fault inside a phase into a tagged ``PhaseError``."""

    def decorator(method: Callable) -> Callable:
        @functools.wraps(method)
        def wrapper(self: "ServiceTemplate", **kwargs: Any) -> Any:
            component = f"ServiceBuilder::{method.__name__}() - '{self.service_name}'"
            snapshot = {name: _snapshot_value(value) for name, value in kwargs.items()}
            try:
                return method(self, **kwargs)
            except PhaseError:
                raise
            except Exception as exc:
                logger.exception("%s failed", component)
                logger.debug("Params: %s", snapshot)
                raise error_cls(
                    component=component,
                    service_name=self.service_name,
                    message="Unhandled error occurred",
                    cause=exc,
                    input_snapshot=snapshot,
                ) from exc

        wrapper.guarded = True
        return wrapper

    return decorator


_PHASE_ERRORS: Dict[str, Type[PhaseError]] = {
    "init": InitError,
    "compile": CompileError,
    "issues": ValidationFault,
    "assume": AssumeError,
    "build": BuildError,
}


class ServiceTemplate(ABC):
    """One deployable unit from the catalog.

    Subclasses provide static data (options, meta, help, commands) and may add
    files and shell fragments through the ``static_files``,
    ``prebuild_fragments`` and ``postbuild_fragments`` hooks. The phase logic
    itself is shared; a subclass that does override a phase gets the same
    guard as the base implementation.
    """

    service_name: ClassVar[str]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for name, error_cls in _PHASE_ERRORS.items():
            method = cls.__dict__.get(name)
            if callable(method) and not getattr(method, "guarded", False):
                setattr(cls, name, guarded_phase(error_cls)(method))

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    @abstractmethod
    def get_config_options(self) -> OptionDescriptor:
        ...

    @abstractmethod
    def get_meta(self) -> ServiceMeta:
        ...

    def get_help(self) -> ServiceHelp:
        return ServiceHelp(service_name=self.service_name)

    def get_commands(self) -> Dict[str, str]:
        return {}

    def service_file(self, *parts: str) -> Path:
        return self.settings.service_path(self.service_name, *parts)

    def base_block(self) -> Dict[str, Any]:
        """Load the service's default compose block from its ``service.yml``."""

        data = yaml.safe_load(self.service_file("service.yml").read_text()) or {}
        if self.service_name not in data:
            raise KeyError(f"service.yml for '{self.service_name}' has no '{self.service_name}' entry")
        return data[self.service_name]

    def static_files(self) -> List[Tuple[str, str]]:
        """``(file name in the service directory, path inside the archive)`` pairs."""

        return []

    def prebuild_fragments(self, build_options: BuildOptions) -> List[Tuple[str, str]]:
        """``(comment, code)`` pairs run before the stack starts."""

        return []

    def postbuild_fragments(self, build_options: BuildOptions) -> List[Tuple[str, str]]:
        return []

    @guarded_phase(InitError)
    def init(self) -> None:
        logger.debug("ServiceBuilder:init() - '%s'", self.service_name)

    @guarded_phase(CompileError)
    def compile(self, *, working_document: WorkingDocument, build_options: BuildOptions) -> PhaseResult:
        logger.info("ServiceBuilder:compile() - '%s' started", self.service_name)
        descriptor = self.get_config_options()
        block = working_document.ensure_service(self.service_name, self.base_block())
        merged, changes = apply_service_options(block, build_options.for_service(self.service_name), descriptor)
        block.clear()
        block.update(merged)
        logger.info("ServiceBuilder:compile() - '%s' completed", self.service_name)
        return PhaseResult(phase="compile", service_name=self.service_name, details=changes)

    @guarded_phase(ValidationFault)
    def issues(
        self,
        *,
        working_document: WorkingDocument,
        build_options: BuildOptions,
        tmp_path: Optional[Path] = None,
    ) -> List[Issue]:
        logger.info("ServiceBuilder:issues() - '%s' started", self.service_name)
        issues: List[Issue] = []
        issues.extend(check_port_conflicts(working_document, build_options, self.service_name))
        issues.extend(check_dependency_services(working_document, build_options, self.service_name))
        issues.extend(check_network_conflicts(working_document, build_options, self.service_name))
        issues.extend(
            check_unsupported_options(
                working_document, build_options, self.service_name, self.get_config_options()
            )
        )
        logger.info("ServiceBuilder:issues() - '%s' Issues found: %d", self.service_name, len(issues))
        return issues

    @guarded_phase(AssumeError)
    def assume(self, *, working_document: WorkingDocument, build_options: BuildOptions) -> Optional[BuildOptions]:
        """Return options with catalog defaults filled in, or ``None`` if nothing was missing."""

        descriptor = self.get_config_options()
        options = build_options.for_service(self.service_name)
        updates: Dict[str, Any] = {}

        if descriptor.image_tags and options.image_tag is None:
            updates["image_tag"] = descriptor.image_tags[0]

        defaults = descriptor.environment_defaults
        environment = dict(options.environment or {})
        missing = {key: value for key, value in defaults.items() if key not in environment}
        if missing:
            environment.update(missing)
            updates["environment"] = environment

        if not updates:
            return None
        logger.debug("ServiceBuilder:assume() - '%s' defaults: %s", self.service_name, updates)
        return build_options.with_service_options(self.service_name, replace(options, **updates))

    @guarded_phase(BuildError)
    def build(
        self,
        *,
        working_document: WorkingDocument,
        build_options: BuildOptions,
        tmp_path: Optional[Path],
        zip_list: List[ZipEntry],
        prebuild_scripts: List[ScriptFragment],
        postbuild_scripts: List[ScriptFragment],
    ) -> PhaseResult:
        logger.info("ServiceBuilder:build() - '%s' started", self.service_name)
        files = []
        for file_name, zip_name in self.static_files():
            full_path = self.service_file(file_name)
            if not full_path.is_file():
                raise FileNotFoundError(f"Service file {full_path} does not exist")
            zip_list.append(ZipEntry(full_path=full_path, zip_name=zip_name))
            files.append(zip_name)
            logger.debug("ServiceBuilder:build() - '%s' Added '%s' to zip", self.service_name, full_path)

        prebuild = self.prebuild_fragments(build_options)
        for comment, code in prebuild:
            prebuild_scripts.append(ScriptFragment(service_name=self.service_name, comment=comment, code=code))
        postbuild = self.postbuild_fragments(build_options)
        for comment, code in postbuild:
            postbuild_scripts.append(ScriptFragment(service_name=self.service_name, comment=comment, code=code))

        logger.info("ServiceBuilder:build() - '%s' completed", self.service_name)
        return PhaseResult(
            phase="build",
            service_name=self.service_name,
            details={"files": files, "prebuild": len(prebuild), "postbuild": len(postbuild)},
        )
