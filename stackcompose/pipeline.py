from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .builder import ServiceTemplate
from .catalog import ServiceCatalog
from .config import Settings
from .errors import BuildError, PhaseError
from .models import (
    BuildManifest,
    BuildOptions,
    Issue,
    IssueKind,
    ScriptFragment,
    WorkingDocument,
    ZipEntry,
)
from .utils import ensure_directory

logger = logging.getLogger(__name__)


class Phase(Enum):
    INIT = auto()
    COMPILE = auto()
    ISSUES = auto()
    ASSUME = auto()
    BUILD = auto()

    @classmethod
    def ordered(cls) -> Iterable["Phase"]:
        return (
            cls.INIT,
            cls.COMPILE,
            cls.ISSUES,
            cls.ASSUME,
            cls.BUILD,
        )


class ServiceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    COMPILED = "compiled"
    VALIDATED = "validated"
    ASSUMED = "assumed"
    BUILT = "built"
    DONE = "done"
    FAILED = "failed"


class FailurePolicy(str, Enum):
    ABORT = "abort"
    SKIP_SERVICE = "skip"


_FAILURE_KINDS: Dict[str, IssueKind] = {
    "init": IssueKind.INIT_FAILURE,
    "compile": IssueKind.COMPILE_FAILURE,
    "issues": IssueKind.ISSUES_FAILURE,
    "assume": IssueKind.ASSUME_FAILURE,
    "build": IssueKind.BUILD_FAILURE,
}


@dataclass
class PipelineContext:
    """State owned by one pipeline run and handed by reference to every phase."""

    build_options: BuildOptions
    settings: Settings = field(default_factory=Settings)
    workspace: Optional[Path] = None
    working_document: WorkingDocument = field(init=False)
    issues: List[Issue] = field(default_factory=list)
    zip_list: List[ZipEntry] = field(default_factory=list)
    prebuild_scripts: List[ScriptFragment] = field(default_factory=list)
    postbuild_scripts: List[ScriptFragment] = field(default_factory=list)
    failures: List[PhaseError] = field(default_factory=list)
    states: Dict[str, ServiceState] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.working_document = WorkingDocument(version=self.settings.compose_version)
        if self.workspace is not None:
            self.workspace = Path(self.workspace)
            ensure_directory(self.workspace)

    @property
    def tmp_path(self) -> Optional[Path]:
        if self.workspace is None:
            return None
        return ensure_directory(self.workspace / "tmp")


class BuildPipeline:
    """Drives every selected service through init, compile, issues, assume and build.

    Each phase runs for all services, in selection order, before the next
    phase starts; the issues phase therefore sees every compiled block.
    """

    def __init__(
        self,
        context: PipelineContext,
        catalog: Optional[ServiceCatalog] = None,
        policy: Optional[FailurePolicy] = None,
    ) -> None:
        self.context = context
        self.catalog = catalog or ServiceCatalog.default()
        self.policy = FailurePolicy(policy or context.settings.failure_policy)
        self.templates: List[ServiceTemplate] = self.catalog.select(
            context.build_options.selected_services, context.settings
        )
        for template in self.templates:
            context.states.setdefault(template.service_name, ServiceState.UNINITIALIZED)
        self._completed: List[Phase] = []
        self._handlers: Dict[Phase, Callable[[ServiceTemplate], object]] = {
            Phase.INIT: self._init,
            Phase.COMPILE: self._compile,
            Phase.ISSUES: self._issues,
            Phase.ASSUME: self._assume,
            Phase.BUILD: self._build,
        }

    def active_templates(self) -> List[ServiceTemplate]:
        return [
            template
            for template in self.templates
            if self.context.states[template.service_name] is not ServiceState.FAILED
        ]

    def run(self) -> BuildManifest:
        self.run_until(Phase.BUILD)
        for template in self.active_templates():
            self.context.states[template.service_name] = ServiceState.DONE
        manifest = self.manifest()
        logger.info(
            "Pipeline finished: %d service(s), %d issue(s), %d failure(s)",
            len(self.templates),
            len(manifest.issues),
            len(manifest.failures),
        )
        return manifest

    def run_until(self, target_phase: Phase) -> Dict[str, object]:
        last_results: Dict[str, object] = {}
        for phase in Phase.ordered():
            if phase not in self._completed:
                last_results = self.run_phase(phase)
            if phase is target_phase:
                break
        return last_results

    def run_phase(self, phase: Phase) -> Dict[str, object]:
        templates = self.active_templates()
        logger.info("Running phase %s for %d service(s)", phase.name.lower(), len(templates))
        results: Dict[str, object] = {}
        handler = self._handlers[phase]
        for template in templates:
            try:
                results[template.service_name] = handler(template)
            except PhaseError as exc:
                if self.policy is FailurePolicy.ABORT:
                    raise
                self._record_failure(template, exc)
        self._completed.append(phase)
        return results

    def status(self) -> Dict[str, str]:
        return {name: state.value for name, state in self.context.states.items()}

    def manifest(self) -> BuildManifest:
        return BuildManifest(
            document=self.context.working_document.to_dict(),
            issues=list(self.context.issues),
            prebuild_scripts=list(self.context.prebuild_scripts),
            postbuild_scripts=list(self.context.postbuild_scripts),
            zip_list=list(self.context.zip_list),
            failures=[failure.to_dict() for failure in self.context.failures],
            states=self.status(),
        )

    def _record_failure(self, template: ServiceTemplate, error: PhaseError) -> None:
        name = template.service_name
        logger.warning("Skipping service '%s' after %s failure: %s", name, error.phase, error)
        self.context.failures.append(error)
        self.context.states[name] = ServiceState.FAILED
        self.context.working_document.services.pop(name, None)
        self.context.issues.append(
            Issue(
                component=error.component,
                kind=_FAILURE_KINDS.get(error.phase, IssueKind.COMPILE_FAILURE),
                message=f"Service '{name}' was skipped: {error.message} ({error.cause!r})",
                affected_services=(name,),
                details={"phase": error.phase},
            )
        )

    def _init(self, template: ServiceTemplate) -> None:
        template.init()

    def _compile(self, template: ServiceTemplate) -> Dict[str, object]:
        result = template.compile(
            working_document=self.context.working_document,
            build_options=self.context.build_options,
        )
        self.context.states[template.service_name] = ServiceState.COMPILED
        return result.to_dict()

    def _issues(self, template: ServiceTemplate) -> int:
        found = template.issues(
            working_document=self.context.working_document,
            build_options=self.context.build_options,
            tmp_path=self.context.tmp_path,
        )
        self.context.issues.extend(found)
        self.context.states[template.service_name] = ServiceState.VALIDATED
        return len(found)

    def _assume(self, template: ServiceTemplate) -> bool:
        updated = template.assume(
            working_document=self.context.working_document,
            build_options=self.context.build_options,
        )
        if updated is None:
            return False
        self.context.build_options = updated
        template.compile(
            working_document=self.context.working_document,
            build_options=self.context.build_options,
        )
        self.context.states[template.service_name] = ServiceState.ASSUMED
        return True

    def _build(self, template: ServiceTemplate) -> Dict[str, object]:
        marks = (
            len(self.context.zip_list),
            len(self.context.prebuild_scripts),
            len(self.context.postbuild_scripts),
        )
        try:
            result = template.build(
                working_document=self.context.working_document,
                build_options=self.context.build_options,
                tmp_path=self.context.tmp_path,
                zip_list=self.context.zip_list,
                prebuild_scripts=self.context.prebuild_scripts,
                postbuild_scripts=self.context.postbuild_scripts,
            )
        except BuildError:
            del self.context.zip_list[marks[0]:]
            del self.context.prebuild_scripts[marks[1]:]
            del self.context.postbuild_scripts[marks[2]:]
            raise
        self.context.states[template.service_name] = ServiceState.BUILT
        return result.to_dict()
