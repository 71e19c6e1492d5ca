from __future__ import annotations

from typing import Dict, List, Tuple

from ..builder import ServiceTemplate
from ..models import BuildOptions, OptionDescriptor, ServiceHelp, ServiceMeta

VOLUME_DIRECTORIES = ("data", "pwfile", "log")


def check_service_files_copied() -> str:
    return """
if [[ ! -f ./services/mosquitto/mosquitto.conf ]]; then
  echo "Mosquitto config file is missing!"
  sleep 2
fi
"""


def create_volumes_directory() -> str:
    lines = [f"mkdir -p ./volumes/mosquitto/{directory}" for directory in VOLUME_DIRECTORIES]
    return "\n" + "\n".join(lines) + "\n"


def check_volumes_directory() -> str:
    checks = "".join(
        f"""
if [[ ! -d ./volumes/mosquitto/{directory} ]]; then
  echo "Mosquitto {directory} directory is missing!"
  HAS_ERROR="true"
fi
"""
        for directory in VOLUME_DIRECTORIES
    )
    return (
        '\nHAS_ERROR="false"'
        + checks
        + """
if [[ "$HAS_ERROR" == "true" ]]; then
  echo "Errors were detected when setting up Mosquitto"
  sleep 1
fi
"""
    )


def setup_volume_permissions(set_user_1883: bool) -> str:
    if set_user_1883:
        return """
echo "Updating mosquitto permissions:"
echo "  chown -R 1883:1883 ./volumes/mosquitto/"
sudo chown -R 1883:1883 ./volumes/mosquitto/
"""
    return """
echo "Mosquitto volume permissions not changed."
"""


class MosquittoService(ServiceTemplate):
    service_name = "mosquitto"

    def get_config_options(self) -> OptionDescriptor:
        return OptionDescriptor(
            service_name=self.service_name,
            labeled_ports={"1883:1883": "mqtt"},
            volumes=True,
            networks=True,
            logging=True,
        )

    def get_help(self) -> ServiceHelp:
        return ServiceHelp(
            service_name=self.service_name,
            website="https://mosquitto.org/",
            online_rendered="https://mosquitto.org/documentation/",
        )

    def get_meta(self) -> ServiceMeta:
        return ServiceMeta(
            service_name=self.service_name,
            display_name="Mosquitto",
            service_type_tags=["mqtt", "message broker"],
            icon_uri="/logos/mosquitto.svg",
        )

    def get_commands(self) -> Dict[str, str]:
        return {
            "add_user": "docker exec -it mosquitto mosquitto_passwd -b /mosquitto/pwfile/pwfile <user> <password>",
            "logs": "docker logs mosquitto",
        }

    def static_files(self) -> List[Tuple[str, str]]:
        return [("mosquitto.conf", "/services/mosquitto/mosquitto.conf")]

    def prebuild_fragments(self, build_options: BuildOptions) -> List[Tuple[str, str]]:
        return [
            ("Create required service directory exists for first launch", create_volumes_directory()),
        ]

    def postbuild_fragments(self, build_options: BuildOptions) -> List[Tuple[str, str]]:
        return [
            ("Ensure required service files exist for launch", check_service_files_copied()),
            ("Ensure required service directory exists for launch", check_volumes_directory()),
            ("Setup correct permissions for volume", setup_volume_permissions(True)),
        ]
