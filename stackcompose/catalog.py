from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Type

from .builder import ServiceTemplate
from .config import Settings
from .services import SERVICE_TEMPLATES


class CatalogError(RuntimeError):
    """Raised when a service is unknown to the catalog."""


@dataclass
class ServiceCatalog:
    """Registry mapping service names to their template classes, in catalog order."""

    templates: Dict[str, Type[ServiceTemplate]] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "ServiceCatalog":
        return cls.from_templates(SERVICE_TEMPLATES)

    @classmethod
    def from_templates(cls, templates: Iterable[Type[ServiceTemplate]]) -> "ServiceCatalog":
        registry: Dict[str, Type[ServiceTemplate]] = {}
        for template in templates:
            name = getattr(template, "service_name", None)
            if not name:
                raise CatalogError(f"{template.__name__} does not declare a service_name")
            if name in registry:
                raise CatalogError(f"Duplicate service name in catalog: {name}")
            registry[name] = template
        return cls(templates=registry)

    def iter_services(self) -> Iterable[str]:
        return self.templates.keys()

    def get(self, service_name: str) -> Type[ServiceTemplate]:
        try:
            return self.templates[service_name]
        except KeyError as exc:
            raise CatalogError(f"Unknown service: {service_name}") from exc

    def create(self, service_name: str, settings: Optional[Settings] = None) -> ServiceTemplate:
        return self.get(service_name)(settings)

    def select(self, service_names: Sequence[str], settings: Optional[Settings] = None) -> List[ServiceTemplate]:
        """Instantiate the named templates, keeping the order they were given in."""

        unknown = [name for name in service_names if name not in self.templates]
        if unknown:
            raise CatalogError(f"Unknown service(s): {', '.join(unknown)}")
        return [self.create(name, settings) for name in dict.fromkeys(service_names)]

    def catalog_order(self, service_names: Sequence[str]) -> List[str]:
        wanted = set(service_names)
        return [name for name in self.templates if name in wanted]

    def __len__(self) -> int:
        return len(self.templates)

    def __contains__(self, service_name: str) -> bool:
        return service_name in self.templates
