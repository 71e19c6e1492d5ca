from __future__ import annotations

from ..builder import ServiceTemplate
from ..models import OptionDescriptor, ServiceMeta


class PrometheusService(ServiceTemplate):
    service_name = "prometheus"

    def get_config_options(self) -> OptionDescriptor:
        return OptionDescriptor(
            service_name=self.service_name,
            labeled_ports={"9090:9090": "http"},
            volumes=False,
            networks=False,
            logging=True,
        )

    def get_meta(self) -> ServiceMeta:
        return ServiceMeta(
            service_name=self.service_name,
            display_name="Prometheus (untested)",
            service_type_tags=["wui", "database manager"],
        )
