# Source-system adapters
# Each module maps one source's export format onto the forecast_core inputs

from .warehouse_export import LoadedSnapshot, WarehouseExportLoader

__all__ = ["LoadedSnapshot", "WarehouseExportLoader"]
