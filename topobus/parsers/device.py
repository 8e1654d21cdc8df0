"""Device instance resolution.

For every ``DeviceInstance`` of the installation document this resolves the
individual address, display name and descriptive fields, the configuration
values and one ``GroupLink`` per linked group address of every
``ComObjectInstanceRef``.
"""
import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from topobus.errors import MissingRequiredAttributeError, ParseError
from topobus.ets_helpers import (
    format_individual_address,
    manufacturer_id_from_ref,
    medium_name,
    short_id,
)
from topobus.models import DeviceInfo, GroupAddressInfo, GroupLink
from topobus.models.catalog import AppProgram
from topobus.parsers.catalogs import CatalogResolver
from topobus.parsers.com_objects import (
    build_object_name,
    com_object_key,
    compute_object_number,
    merge_module_values,
    resolve_com_data,
    resolve_module_arguments,
    resolve_object_name,
    resolve_template,
)
from topobus.parsers.parameters import extract_device_configuration
from topobus.parsers.xml_utils import (
    XmlDocument,
    attr_value,
    describe,
    find_child_element,
    iter_children,
    iter_descendants,
    required_attribute,
)

logger = logging.getLogger(__name__)

LINK_SEPARATORS = re.compile(r"[\s,]+")


def parse_links_attribute(value: Optional[str]) -> List[str]:
    """
    Split a ``Links`` attribute, keeping order.

    Example:
        >>> parse_links_attribute(" GA-1 GA-2,GA-3 ")
        ['GA-1', 'GA-2', 'GA-3']
    """
    if not value:
        return []
    return [item for item in LINK_SEPARATORS.split(value) if item]


def extract_connector_links(com_ref: ET.Element) -> List[str]:
    """Group address ids from ``Connectors``: all ``Send`` before all ``Receive``."""
    ids = []
    connectors = find_child_element(com_ref, "Connectors")
    if connectors is None:
        return ids
    for tag in ("Send", "Receive"):
        for connector in iter_children(connectors, tag):
            ref_id = attr_value(connector, "GroupAddressRefId")
            if ref_id:
                ids.append(short_id(ref_id))
    return ids


def _first_attr(element: ET.Element, *names: str) -> Optional[str]:
    for name in names:
        value = attr_value(element, name)
        if value is not None:
            return value
    return None


class DeviceResolver:
    """Resolves all device instances of one installation document"""

    def __init__(self, doc: XmlDocument, catalogs: CatalogResolver,
                 group_address_by_id: Dict[str, GroupAddressInfo],
                 manufacturer_names: Optional[Dict[str, str]] = None):
        """
        Initialize resolver.

        Args:
            doc: Installation document
            catalogs: Manufacturer catalog access for this import
            group_address_by_id: Group addresses keyed by short id
            manufacturer_names: ``M-xxxx`` -> manufacturer name
        """
        self.doc = doc
        self.catalogs = catalogs
        self.group_address_by_id = group_address_by_id
        self.manufacturer_names = manufacturer_names or {}

    def extract_devices(self) -> List[DeviceInfo]:
        """
        Resolve every device instance in document order.

        Returns:
            List of devices; instances without ``Id`` are logged and skipped
        """
        devices = []
        for element in self.doc.iter_elements("DeviceInstance"):
            try:
                device = self.resolve_device(element)
            except ParseError as e:
                logger.warning(f"Skipping DeviceInstance: {e}")
                continue
            devices.append(device)
        logger.info(f"Resolved {len(devices)} devices")
        return devices

    def resolve_device(self, element: ET.Element) -> DeviceInfo:
        """
        Resolve a single device instance.

        Raises:
            MissingRequiredAttributeError: If the instance has no Id
        """
        device_id = required_attribute(element, "Id")
        area = self.doc.find_ancestor_address(element, "Area")
        line_node = self.doc.find_ancestor(element, "Line")
        line = attr_value(line_node, "Address")
        device_address = attr_value(element, "Address")

        product_ref_id = attr_value(element, "ProductRefId")
        hardware2program_id = attr_value(element, "Hardware2ProgramRefId")
        manufacturer_id = manufacturer_id_from_ref(product_ref_id) or manufacturer_id_from_ref(hardware2program_id)
        manufacturer_name = self.manufacturer_names.get(manufacturer_id) if manufacturer_id else None

        hardware = self.catalogs.hardware(manufacturer_id)
        is_coupler = hardware.is_coupler(product_ref_id, hardware2program_id) if hardware else False
        if device_address is None and is_coupler:
            device_address = "0"
        if device_address is None and area is None and line is None:
            error = MissingRequiredAttributeError("DeviceInstance", "Address", describe(element))
            logger.warning(f"DeviceInstance missing Address and topology: {error}")

        product = hardware.products.get(product_ref_id) if hardware and product_ref_id else None
        product_name = product.name if product else None
        product_reference = product.order_number if product else None

        individual_address = format_individual_address(area, line, device_address, device_id)
        name = (
            (element.get("Name") or "").strip()
            or product_name
            or product_reference
            or manufacturer_name
            or f"Device {individual_address}"
        )

        app = self.catalogs.app_program(hardware, hardware2program_id)
        info = app.info if app else None

        device = DeviceInfo(
            instance_id=device_id,
            individual_address=individual_address,
            name=name,
            manufacturer=manufacturer_name,
            product=product_name,
            product_reference=product_reference,
            description=attr_value(element, "Description"),
            comment=attr_value(element, "Comment"),
            serial_number=attr_value(element, "SerialNumber"),
            app_program_name=info.name if info else None,
            app_program_version=info.version if info else None,
            app_program_number=info.number if info else None,
            app_program_type=info.program_type if info else None,
            app_mask_version=info.mask_version if info else None,
            last_modified=attr_value(element, "LastModified"),
            last_download=attr_value(element, "LastDownload"),
        )
        self._apply_segment(device, element, line_node)
        self._apply_ip_config(device, element)

        module_args = self._module_arguments(element)
        for com_ref in iter_descendants(element, ["ComObjectInstanceRef"]):
            device.group_links.extend(self.resolve_links(com_ref, module_args, app))

        device.configuration, device.configuration_entries = extract_device_configuration(element, app)
        return device

    def _apply_segment(self, device: DeviceInfo, element: ET.Element, line_node: Optional[ET.Element]):
        segment = self.doc.find_ancestor(element, "Segment")
        segment_medium = attr_value(segment, "MediumTypeRefId")
        line_medium = attr_value(line_node, "MediumTypeRefId")
        device.segment_id = attr_value(segment, "Id")
        device.segment_number = attr_value(segment, "Number")
        device.segment_domain_address = attr_value(segment, "DomainAddress")
        device.segment_medium_type = medium_name(segment_medium) if segment_medium else None
        medium = segment_medium or line_medium
        device.medium_type = medium_name(medium) if medium else None

    def _apply_ip_config(self, device: DeviceInfo, element: ET.Element):
        ip_config = find_child_element(element, "IPConfig")
        if ip_config is None:
            ip_config = next(iter_descendants(element, ["IPConfig"]), None)
        if ip_config is None:
            return
        device.ip_assignment = attr_value(ip_config, "Assign")
        device.ip_address = attr_value(ip_config, "IPAddress")
        device.ip_subnet_mask = attr_value(ip_config, "SubnetMask")
        device.ip_default_gateway = attr_value(ip_config, "DefaultGateway")
        device.mac_address = attr_value(ip_config, "MACAddress")

    @staticmethod
    def _module_arguments(element: ET.Element) -> Dict[str, Dict[str, str]]:
        """``ModuleInstance/@Id`` -> {``Argument/@RefId``: ``@Value``}."""
        module_args = {}
        for module in iter_descendants(element, ["ModuleInstance"]):
            module_id = module.get("Id", "")
            if not module_id:
                continue
            args = {}
            for argument in iter_descendants(module, ["Argument"]):
                ref_id = argument.get("RefId", "")
                if ref_id:
                    args[ref_id] = argument.get("Value", "")
            if args:
                module_args[module_id] = args
        return module_args

    def _lookup_group_address(self, link_id: str) -> Optional[GroupAddressInfo]:
        return self.group_address_by_id.get(link_id) or self.group_address_by_id.get(short_id(link_id))

    def resolve_links(self, com_ref: ET.Element, module_args: Dict[str, Dict[str, str]],
                      app: Optional[AppProgram]) -> List[GroupLink]:
        """
        Build the group links of one ``ComObjectInstanceRef``.

        The first linked group address is the object's sending address
        (ETS rule); it is recorded on every link of the object.

        Args:
            com_ref: The ``ComObjectInstanceRef`` element
            module_args: Module arguments of the device
            app: Application program of the device, if loaded

        Returns:
            One GroupLink per linked group address, in link order
        """
        ref_id = com_ref.get("RefId", "")
        if not ref_id:
            return []

        link_ids = parse_links_attribute(com_ref.get("Links")) or extract_connector_links(com_ref)
        if not link_ids:
            return []

        module_id = ref_id.split("_O-", 1)[0]
        parent_id = module_id.split("_SM-", 1)[0]
        module_values = module_args.get(module_id)
        base_module_values = module_args.get(parent_id) if parent_id != module_id else None
        arg_values = resolve_module_arguments(merge_module_values(module_values, base_module_values), app)

        com_def = app.com_object_refs.get(com_object_key(ref_id)) if app else None
        com_obj = app.com_objects.get(com_def.ref_id) if app and com_def and com_def.ref_id else None
        com_data = resolve_com_data(com_def, com_obj)
        number = compute_object_number(com_data.number, com_obj, module_values, base_module_values, app, ref_id)
        flags = com_data.flags.to_model_flags()

        security = attr_value(com_ref, "Security")
        building_function = _first_attr(com_ref, "BuildingFunction", "BuildingFunctionRefId", "BuildingFunctionId")
        building_part = _first_attr(com_ref, "BuildingPart", "BuildingPartRefId", "BuildingPartId")

        base_name = resolve_object_name(com_def, com_obj, arg_values)
        function_text = resolve_template(
            (com_def.function_text if com_def else None) or (com_obj.function_text if com_obj else None),
            arg_values,
        )
        object_name_raw = resolve_template(
            (com_def.name if com_def else None) or (com_obj.name if com_obj else None),
            arg_values,
        )
        object_text = resolve_template(
            (com_def.text if com_def else None) or (com_obj.text if com_obj else None),
            arg_values,
        )

        links = []
        sending_address = None
        for index, link_id in enumerate(link_ids):
            ga = self._lookup_group_address(link_id)
            address = ga.address if ga else link_id
            if index == 0:
                sending_address = address
            fallback = ga.name if ga and ga.name.strip() else ref_id

            links.append(GroupLink(
                object_name=build_object_name(number, object_text, object_name_raw, function_text, base_name, fallback),
                group_address=address,
                is_transmitter=bool(flags and (flags.transmit or flags.update)),
                is_receiver=bool(flags and (flags.write or flags.read)),
                com_object_ref_id=ref_id,
                object_name_raw=object_name_raw,
                object_text=object_text,
                object_function_text=function_text,
                ets_sending_address=sending_address,
                ets_sending=index == 0,
                ets_receiving=index != 0,
                channel=com_data.channel,
                datapoint_type=com_data.datapoint_type,
                number=number,
                description=com_data.description,
                object_size=com_data.object_size,
                security=security,
                building_function=building_function,
                building_part=building_part,
                flags=flags,
            ))
        return links
