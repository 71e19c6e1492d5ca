from __future__ import annotations

from ..builder import ServiceTemplate
from ..models import OptionDescriptor, ServiceMeta


class EspruinoHubService(ServiceTemplate):
    service_name = "espruinohub"

    def get_config_options(self) -> OptionDescriptor:
        return OptionDescriptor(
            service_name=self.service_name,
            volumes=False,
            networks=False,
            logging=True,
        )

    def get_meta(self) -> ServiceMeta:
        return ServiceMeta(
            service_name=self.service_name,
            display_name="EspruinoHub (untested)",
            service_type_tags=["mqtt", "ble", "rpi only"],
        )
