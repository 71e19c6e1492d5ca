from __future__ import annotations

from ..builder import ServiceTemplate
from ..models import OptionDescriptor, ServiceHelp, ServiceMeta


class GrafanaService(ServiceTemplate):
    service_name = "grafana"

    def get_config_options(self) -> OptionDescriptor:
        return OptionDescriptor(
            service_name=self.service_name,
            labeled_ports={"3000:3000": "http"},
            modifyable_environment=[
                {"key": "GF_PATHS_DATA", "value": "/var/lib/grafana"},
                {"key": "GF_PATHS_LOGS", "value": "/var/log/grafana"},
            ],
            volumes=True,
            image_tags=["latest", "7.5.7"],
            networks=True,
            logging=True,
        )

    def get_help(self) -> ServiceHelp:
        return ServiceHelp(
            service_name=self.service_name,
            website="https://grafana.com/",
            online_rendered="https://grafana.com/docs/grafana/latest/",
        )

    def get_meta(self) -> ServiceMeta:
        return ServiceMeta(
            service_name=self.service_name,
            display_name="Grafana",
            service_type_tags=["wui", "graphs", "dashboard"],
            icon_uri="/logos/grafana.svg",
        )
