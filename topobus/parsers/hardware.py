"""Manufacturer hardware catalog (``M-xxxx/Hardware.xml``)."""
import logging
from typing import Optional

from topobus.models.catalog import HardwareCatalog, Product
from topobus.parsers.translations import attr_value_localized, build_translations
from topobus.parsers.xml_utils import XmlDocument, attr_value, iter_descendants

logger = logging.getLogger(__name__)


def hardware_path(manufacturer_id: str) -> str:
    return f"{manufacturer_id}/Hardware.xml"


def parse_coupler_flag(value: Optional[str]) -> bool:
    return value in ("1", "true", "True")


def parse_hardware_catalog(doc: XmlDocument, manufacturer_id: str, preferred_language: Optional[str] = None) -> HardwareCatalog:
    """
    Extract products, coupler flags and program links from a hardware document.

    Args:
        doc: Parsed ``Hardware.xml``
        manufacturer_id: ``M-xxxx`` id the document belongs to
        preferred_language: Language used for product names

    Returns:
        HardwareCatalog; the first product definition of an id wins
    """
    translations = build_translations(doc, "", preferred_language)
    catalog = HardwareCatalog(manufacturer_id)

    for hardware in doc.iter_elements("Hardware"):
        is_coupler = parse_coupler_flag(hardware.get("IsCoupler"))

        for hw2prg in iter_descendants(hardware, ["Hardware2Program"]):
            hw2prg_id = attr_value(hw2prg, "Id")
            if hw2prg_id is None:
                continue
            app_ref = next(iter_descendants(hw2prg, ["ApplicationProgramRef"]), None)
            app_id = attr_value(app_ref, "RefId")
            if app_id is not None:
                catalog.hardware2program[hw2prg_id] = app_id
            catalog.coupler_flags[hw2prg_id] = is_coupler

        for product in iter_descendants(hardware, ["Product"]):
            product_id = attr_value(product, "Id")
            if product_id is None:
                continue
            if product_id not in catalog.products:
                catalog.products[product_id] = Product(
                    id=product_id,
                    name=attr_value_localized(product, "Text", translations),
                    order_number=attr_value(product, "OrderNumber"),
                )
            catalog.coupler_flags[product_id] = is_coupler

    logger.debug(f"Hardware catalog {manufacturer_id}: {len(catalog.products)} products, "
                 f"{len(catalog.hardware2program)} program links")
    return catalog


def parse_manufacturer_names(doc: Optional[XmlDocument]) -> dict:
    """``Manufacturer/@Id -> @Name`` from ``knx_master.xml``."""
    names = {}
    if doc is None:
        return names
    for manufacturer in doc.iter_elements("Manufacturer"):
        manufacturer_id = attr_value(manufacturer, "Id")
        name = attr_value(manufacturer, "Name")
        if manufacturer_id and name:
            names.setdefault(manufacturer_id, name)
    return names
