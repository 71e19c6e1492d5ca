from __future__ import annotations

from typing import List, Tuple

from ..builder import ServiceTemplate
from ..models import OptionDescriptor, ServiceMeta


class TelegrafService(ServiceTemplate):
    service_name = "telegraf"

    def get_config_options(self) -> OptionDescriptor:
        return OptionDescriptor(
            service_name=self.service_name,
            labeled_ports={"8092:8092/udp": "udp", "8094:8094": "tcp", "8125:8125/udp": "statsd"},
            volumes=True,
            networks=True,
            logging=True,
        )

    def get_meta(self) -> ServiceMeta:
        return ServiceMeta(
            service_name=self.service_name,
            display_name="Telegraf",
            service_type_tags=["metrics", "collector"],
            icon_uri="/logos/telegraf.svg",
        )

    def static_files(self) -> List[Tuple[str, str]]:
        return [("telegraf.conf", "/services/telegraf/telegraf.conf")]
