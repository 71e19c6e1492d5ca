from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple, Type

import pytest
import yaml

from stackcompose.builder import ServiceTemplate
from stackcompose.config import Settings
from stackcompose.models import BuildOptions, OptionDescriptor, ServiceMeta


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(service_files=tmp_path / "files", output_dir=tmp_path / "build")


@pytest.fixture
def define_service(settings: Settings) -> Callable[..., Type[ServiceTemplate]]:
    """Write a service.yml for ``name`` and return a template class serving it."""

    def _define(
        name: str,
        block: Optional[Dict[str, Any]] = None,
        *,
        descriptor: Optional[Dict[str, Any]] = None,
        prebuild: Sequence[Tuple[str, str]] = (),
        postbuild: Sequence[Tuple[str, str]] = (),
        files: Iterable[Tuple[str, str]] = (),
    ) -> Type[ServiceTemplate]:
        if block is not None:
            path = settings.service_path(name, "service.yml")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(yaml.safe_dump({name: block}))
        descriptor_kwargs = dict(descriptor or {})
        static = list(files)

        class Template(ServiceTemplate):
            service_name = name

            def get_config_options(self) -> OptionDescriptor:
                return OptionDescriptor(service_name=name, **descriptor_kwargs)

            def get_meta(self) -> ServiceMeta:
                return ServiceMeta(service_name=name, display_name=name.title())

            def static_files(self):
                return static

            def prebuild_fragments(self, build_options: BuildOptions):
                return list(prebuild)

            def postbuild_fragments(self, build_options: BuildOptions):
                return list(postbuild)

        Template.__name__ = f"{name.title()}Template"
        return Template

    return _define
