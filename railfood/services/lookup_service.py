# railfood/services/lookup_service.py
from typing import Dict, Iterable, List, Optional

from railfood.domain.errors import ApiError
from railfood.domain.schemas import MenuItem, Order, Station, Vendor
from railfood.services.api_client import ApiClient
from railfood.utils.logging import get_logger

logger = get_logger(__name__)


class LookupService:
    """
    Slowniki id -> encja dla jednej sesji dashboardu.
    Brakujace encje zastepowane placeholderem, zeby tabela dalej sie renderowala.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self.stations: Dict[int, Station] = {}
        self.vendors: Dict[int, Vendor] = {}
        self.items: Dict[int, MenuItem] = {}

    def station(self, station_id: int) -> Station:
        if station_id not in self.stations:
            try:
                self.stations[station_id] = Station.model_validate(
                    self.api.get(f"/stations/{station_id}")
                )
            except (ApiError, ValueError) as e:
                logger.error(f"Failed to fetch station {station_id}: {e}")
                self.stations[station_id] = Station(
                    station_id=station_id,
                    station_name=f"Station #{station_id}",
                    station_code="Unknown",
                    city="Unknown",
                    state="Unknown",
                )
        return self.stations[station_id]

    def vendor(self, vendor_id: int) -> Vendor:
        if vendor_id not in self.vendors:
            try:
                self.vendors[vendor_id] = Vendor.model_validate(
                    self.api.get(f"/vendors/{vendor_id}")
                )
            except (ApiError, ValueError) as e:
                logger.error(f"Failed to fetch vendor {vendor_id}: {e}")
                self.vendors[vendor_id] = Vendor(
                    vendor_id=vendor_id, business_name=f"Vendor #{vendor_id}"
                )
        return self.vendors[vendor_id]

    def menu_item(self, item_id: int) -> MenuItem:
        if item_id not in self.items:
            try:
                self.items[item_id] = MenuItem.model_validate(
                    self.api.get(f"/menu/items/{item_id}")
                )
            except (ApiError, ValueError) as e:
                logger.error(f"Failed to fetch item {item_id}: {e}")
                self.items[item_id] = MenuItem(
                    item_id=item_id,
                    item_name=f"Item #{item_id}",
                    description="Unknown",
                    category="Unknown",
                )
        return self.items[item_id]

    def enrich_orders(self, orders: Iterable[Order]) -> List[Order]:
        enriched = []
        for order in orders:
            if order.delivery_station_id is not None:
                self.station(order.delivery_station_id)
            items = []
            for item in order.items:
                menu = self.menu_item(item.item_id)
                items.append(
                    item.model_copy(
                        update={
                            "item_name": menu.item_name,
                            "category": menu.category or "Unknown",
                            "image_url": menu.image_url,
                        }
                    )
                )
            enriched.append(
                order.model_copy(
                    update={
                        "vendor_name": self.vendor(order.vendor_id).display_name,
                        "train_number": order.train_number or f"Train #{order.train_id}",
                        "items": items,
                    }
                )
            )
        return enriched

    def station_label(self, station_id: Optional[int]) -> str:
        if station_id is None:
            return "Not selected"
        station = self.station(station_id)
        return f"{station.station_name} ({station.station_code})"

    # =====================================================
    # opcje filtrow
    # =====================================================
    def list_stations(self) -> List[Station]:
        try:
            data = self.api.get("/stations/all") or []
        except ApiError as e:
            logger.error(f"Failed to fetch stations: {e}")
            return []
        if isinstance(data, dict):
            data = data.get("content") or []
        stations = [Station.model_validate(raw) for raw in data]
        for station in stations:
            self.stations[station.station_id] = station
        return stations

    def list_vendors_for_station(self, station_id: Optional[int]) -> List[Vendor]:
        if not station_id:
            return []
        try:
            data = self.api.get(
                f"/vendors/stations/{station_id}", params={"page": 0, "size": 100}
            ) or {}
        except ApiError as e:
            logger.error(f"Failed to fetch vendors for station {station_id}: {e}")
            return []
        vendors = [Vendor.model_validate(raw) for raw in data.get("content") or []]
        for vendor in vendors:
            self.vendors[vendor.vendor_id] = vendor
        return vendors
