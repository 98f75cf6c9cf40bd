"""Tariffs feature: provider client, snapshot schemas and the tariff store."""

from tariffsync.features.tariffs.client import WbTariffsClient, parse_decimal
from tariffsync.features.tariffs.models import TariffRequest, WarehouseTariff
from tariffsync.features.tariffs.routes import router
from tariffsync.features.tariffs.schemas import TariffSnapshot, WarehouseTariffData
from tariffsync.features.tariffs.service import TariffService, TariffSet

__all__ = [
    "TariffRequest",
    "TariffService",
    "TariffSet",
    "TariffSnapshot",
    "WarehouseTariff",
    "WarehouseTariffData",
    "WbTariffsClient",
    "parse_decimal",
    "router",
]
