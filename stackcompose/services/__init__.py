"""Cataloged service templates, in catalog order."""

from .espruinohub import EspruinoHubService
from .grafana import GrafanaService
from .influxdb import InfluxDbService
from .mosquitto import MosquittoService
from .prometheus import PrometheusService
from .telegraf import TelegrafService

SERVICE_TEMPLATES = (
    MosquittoService,
    InfluxDbService,
    TelegrafService,
    GrafanaService,
    PrometheusService,
    EspruinoHubService,
)

__all__ = [
    "SERVICE_TEMPLATES",
    "EspruinoHubService",
    "GrafanaService",
    "InfluxDbService",
    "MosquittoService",
    "PrometheusService",
    "TelegrafService",
]
