from pathlib import Path

import pytest

from stackcompose.catalog import CatalogError, ServiceCatalog
from stackcompose.config import Settings
from stackcompose.services import MosquittoService


def test_default_catalog_lists_services_in_catalog_order() -> None:
    catalog = ServiceCatalog.default()
    assert list(catalog.iter_services()) == [
        "mosquitto",
        "influxdb",
        "telegraf",
        "grafana",
        "prometheus",
        "espruinohub",
    ]
    assert len(catalog) == 6
    assert "mosquitto" in catalog
    assert catalog.get("mosquitto") is MosquittoService


def test_unknown_service_raises_catalog_error() -> None:
    catalog = ServiceCatalog.default()
    with pytest.raises(CatalogError):
        catalog.get("nodered")
    with pytest.raises(CatalogError, match="nodered"):
        catalog.select(["mosquitto", "nodered"])


def test_select_keeps_given_order_and_drops_duplicates(tmp_path: Path) -> None:
    catalog = ServiceCatalog.default()
    settings = Settings(service_files=tmp_path)
    templates = catalog.select(["grafana", "mosquitto", "grafana"], settings)
    assert [template.service_name for template in templates] == ["grafana", "mosquitto"]
    assert all(template.settings is settings for template in templates)


def test_catalog_order_sorts_selection() -> None:
    catalog = ServiceCatalog.default()
    assert catalog.catalog_order(["grafana", "mosquitto", "unknown"]) == ["mosquitto", "grafana"]


def test_duplicate_template_names_are_rejected() -> None:
    with pytest.raises(CatalogError, match="Duplicate"):
        ServiceCatalog.from_templates([MosquittoService, MosquittoService])


def test_templates_expose_static_metadata() -> None:
    catalog = ServiceCatalog.default()
    influxdb = catalog.create("influxdb")
    options = influxdb.get_config_options()
    assert options.labeled_ports == {"8086:8086": "http"}
    assert options.image_tags == ["1.8.4", "latest"]
    assert options.environment_defaults == {"INFLUXDB_UDP_BIND_ADDRESS": "0.0.0.0:8086"}
    assert influxdb.get_meta().display_name == "InfluxDB"
    assert influxdb.get_help().service_name == "influxdb"

    espruinohub = catalog.create("espruinohub")
    assert espruinohub.get_config_options().networks is False
    assert espruinohub.get_commands() == {}
