"""
Shipment Adapter for the transit engine.

Unifies regular bilties and manually entered station summaries into one
shipment shape so that availability and assignment never need to know
which table a record came from.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Iterable

from ..models import Bilty, ManualBilty, City, SavingOption, ShipmentSource


class ShipmentAdapterInterface(ABC):
    """
    Interface for reading the shipment pool of a branch.

    Shipment dicts carry at least: id, source, gr_no, to_city_name,
    no_of_pkg, wt, total, payment_mode and delivery_type.
    """

    @abstractmethod
    def list_pool(self, branch) -> List[Dict[str, Any]]:
        """
        Saved, active, non-cancelled shipments booked at a branch.

        Args:
            branch: Origin Branch

        Returns:
            List of shipment dicts, at most one per gr_no
        """
        pass

    @abstractmethod
    def resolve(self, branch, gr_nos: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """
        Look up shipments of a branch by GR number.

        Args:
            branch: Origin Branch
            gr_nos: GR numbers to look up

        Returns:
            Mapping of gr_no to shipment dict for the GR numbers found
        """
        pass

    @abstractmethod
    def get_instance(self, source: str, shipment_id):
        """
        Load the underlying model instance of a shipment.

        Raises:
            Bilty.DoesNotExist / ManualBilty.DoesNotExist
        """
        pass


class OrmShipmentAdapter(ShipmentAdapterInterface):
    """Reads shipments from the Bilty and ManualBilty tables."""

    def list_pool(self, branch) -> List[Dict[str, Any]]:
        bilties = (
            Bilty.objects.select_related('to_city')
            .filter(branch=branch, is_active=True, saving_option=SavingOption.SAVE)
        )
        manual = ManualBilty.objects.filter(branch=branch, is_active=True)
        return self._merge(bilties, manual)

    def resolve(self, branch, gr_nos: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        gr_nos = list(gr_nos)
        bilties = (
            Bilty.objects.select_related('to_city')
            .filter(branch=branch, is_active=True, saving_option=SavingOption.SAVE, gr_no__in=gr_nos)
        )
        manual = ManualBilty.objects.filter(branch=branch, is_active=True, gr_no__in=gr_nos)
        return {shipment['gr_no']: shipment for shipment in self._merge(bilties, manual)}

    def get_instance(self, source: str, shipment_id):
        if source == ShipmentSource.MANUAL:
            return ManualBilty.objects.get(id=shipment_id)
        return Bilty.objects.select_related('to_city').get(id=shipment_id)

    def _merge(self, bilties, manual_bilties) -> List[Dict[str, Any]]:
        """Project both sources; a regular bilty wins over a manual one with the same GR."""
        shipments = [bilty_to_shipment(bilty) for bilty in bilties]
        regular_gr_nos = {shipment['gr_no'] for shipment in shipments}

        manual_bilties = [m for m in manual_bilties if m.gr_no not in regular_gr_nos]
        stations = {m.station for m in manual_bilties}
        cities = {city.city_code: city for city in City.objects.filter(city_code__in=stations)}

        shipments.extend(
            manual_bilty_to_shipment(m, cities.get(m.station)) for m in manual_bilties
        )
        return shipments


def bilty_to_shipment(bilty: Bilty) -> Dict[str, Any]:
    city = bilty.to_city
    return {
        'id': bilty.id,
        'source': ShipmentSource.REGULAR.value,
        'gr_no': bilty.gr_no,
        'bilty_date': bilty.bilty_date,
        'consignor_name': bilty.consignor_name,
        'consignee_name': bilty.consignee_name,
        'no_of_pkg': bilty.no_of_pkg,
        'wt': bilty.wt,
        'total': bilty.total,
        'payment_mode': bilty.payment_mode,
        'delivery_type': bilty.delivery_type,
        'to_city_name': city.city_name if city else 'Unknown',
        'to_city_code': city.city_code if city else 'N/A',
        'e_way_bill': bilty.e_way_bill,
        'pvt_marks': bilty.pvt_marks,
    }


def manual_bilty_to_shipment(manual: ManualBilty, city: City = None) -> Dict[str, Any]:
    return {
        'id': manual.id,
        'source': ShipmentSource.MANUAL.value,
        'gr_no': manual.gr_no,
        'bilty_date': manual.created_at.date() if manual.created_at else None,
        'consignor_name': manual.consignor,
        'consignee_name': manual.consignee,
        'no_of_pkg': manual.no_of_packets,
        'wt': manual.weight,
        'total': manual.amount,
        'payment_mode': manual.payment_status,
        'delivery_type': manual.delivery_type,
        'to_city_name': city.city_name if city else manual.station,
        'to_city_code': manual.station,
        'e_way_bill': manual.e_way_bill,
        'pvt_marks': manual.pvt_marks,
    }


# Global adapter instance
shipment_adapter = OrmShipmentAdapter()


def get_shipment_adapter() -> ShipmentAdapterInterface:
    """Factory function to get the current shipment adapter."""
    return shipment_adapter


def switch_to_adapter(adapter: ShipmentAdapterInterface):
    """
    Switch the shipment adapter implementation.

    Args:
        adapter: Implementation of ShipmentAdapterInterface
    """
    global shipment_adapter
    shipment_adapter = adapter
