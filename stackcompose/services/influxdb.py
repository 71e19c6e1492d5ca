from __future__ import annotations

from typing import List, Tuple

from ..builder import ServiceTemplate
from ..models import BuildOptions, OptionDescriptor, ServiceHelp, ServiceMeta


class InfluxDbService(ServiceTemplate):
    service_name = "influxdb"

    def get_config_options(self) -> OptionDescriptor:
        return OptionDescriptor(
            service_name=self.service_name,
            labeled_ports={"8086:8086": "http"},
            modifyable_environment=[
                {"key": "INFLUXDB_UDP_BIND_ADDRESS", "value": "0.0.0.0:8086"},
            ],
            volumes=True,
            image_tags=["1.8.4", "latest"],
            networks=True,
            logging=True,
        )

    def get_help(self) -> ServiceHelp:
        return ServiceHelp(
            service_name=self.service_name,
            website="https://www.influxdata.com/",
            online_rendered="https://docs.influxdata.com/influxdb/v1.8/",
        )

    def get_meta(self) -> ServiceMeta:
        return ServiceMeta(
            service_name=self.service_name,
            display_name="InfluxDB",
            service_type_tags=["database", "timeseries", "sql"],
            icon_uri="/logos/influxdb.svg",
        )

    def get_commands(self) -> dict:
        return {"shell": "docker exec -it influxdb influx"}

    def prebuild_fragments(self, build_options: BuildOptions) -> List[Tuple[str, str]]:
        return [
            (
                "Create required service directory exists for first launch",
                "\nmkdir -p ./volumes/influxdb/data\n",
            )
        ]
