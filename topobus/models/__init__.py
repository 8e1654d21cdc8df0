"""Data models for the imported KNX project.

This package contains the data classes produced by one import call:
- KnxProjectData: the whole resolved project
- AreaInfo / LineInfo: topology metadata
- DeviceInfo: a device instance with its group links and configuration
- GroupLink / ObjectFlags: one communication-object-to-group-address relation
- GroupAddressInfo: a group address with its range context
- BuildingSpace: the building/location tree
- ProjectInfo: project metadata (tags, history, attachments)

All models are created during a single import and treated as read-only
afterwards. ``to_dict()`` produces JSON-ready dictionaries; optional fields
marked with ``OMIT_EMPTY`` are left out when unset.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

OMIT_EMPTY = {"omit_empty": True}


def _serialize(value: Any) -> Any:
    if is_dataclass(value):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    return value


class SerializableModel:
    """Mixin providing ``to_dict()`` for dataclass models."""

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for model_field in fields(self):
            value = getattr(self, model_field.name)
            if model_field.metadata.get("omit_empty") and (value is None or value == [] or value == {}):
                continue
            result[model_field.name] = _serialize(value)
        return result


@dataclass
class AreaInfo(SerializableModel):
    """Information about a KNX area."""
    address: str
    name: Optional[str] = None
    description: Optional[str] = None
    comment: Optional[str] = None
    completion_status: Optional[str] = None


@dataclass
class LineInfo(SerializableModel):
    """Information about a KNX line. ``area`` refers to ``AreaInfo.address``."""
    area: str
    line: str
    name: Optional[str] = None
    description: Optional[str] = None
    comment: Optional[str] = None
    medium_type: Optional[str] = None
    completion_status: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.area}.{self.line}"


@dataclass
class ObjectFlags(SerializableModel):
    """Communication object flags (C R W T U I)."""
    communication: bool = False
    read: bool = False
    write: bool = False
    transmit: bool = False
    update: bool = False
    read_on_init: bool = False


@dataclass
class GroupLink(SerializableModel):
    """Link between a device communication object and a group address."""
    object_name: str
    group_address: str
    is_transmitter: bool = False
    is_receiver: bool = False
    com_object_ref_id: Optional[str] = None
    object_name_raw: Optional[str] = None
    object_text: Optional[str] = None
    object_function_text: Optional[str] = None
    # ETS rule: the first linked address of an object is its sending address
    ets_sending_address: Optional[str] = None
    ets_sending: bool = False
    ets_receiving: bool = False
    channel: Optional[str] = None
    datapoint_type: Optional[str] = None
    number: Optional[int] = None
    description: Optional[str] = None
    object_size: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    security: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    building_function: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    building_part: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    flags: Optional[ObjectFlags] = None


@dataclass
class DeviceConfigEntry(SerializableModel):
    """Configuration parameter entry for a device."""
    name: str
    value: str
    value_raw: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    value_label: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    parameter_type: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    context: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    ref_id: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    source: Optional[str] = field(default=None, metadata=OMIT_EMPTY)


@dataclass
class DeviceInfo(SerializableModel):
    """Information about a KNX device instance."""
    instance_id: str
    individual_address: str
    name: str
    manufacturer: Optional[str] = None
    product: Optional[str] = None
    product_reference: Optional[str] = None
    description: Optional[str] = None
    comment: Optional[str] = None
    serial_number: Optional[str] = None
    app_program_name: Optional[str] = None
    app_program_version: Optional[str] = None
    app_program_number: Optional[str] = None
    app_program_type: Optional[str] = None
    app_mask_version: Optional[str] = None
    medium_type: Optional[str] = None
    segment_id: Optional[str] = None
    segment_number: Optional[str] = None
    segment_domain_address: Optional[str] = None
    segment_medium_type: Optional[str] = None
    ip_assignment: Optional[str] = None
    ip_address: Optional[str] = None
    ip_subnet_mask: Optional[str] = None
    ip_default_gateway: Optional[str] = None
    mac_address: Optional[str] = None
    last_modified: Optional[str] = None
    last_download: Optional[str] = None
    group_links: List[GroupLink] = field(default_factory=list)
    configuration: Dict[str, str] = field(default_factory=dict)
    configuration_entries: List[DeviceConfigEntry] = field(default_factory=list, metadata=OMIT_EMPTY)

    def __str__(self) -> str:
        return f"{self.individual_address} {self.name}"


@dataclass
class GroupAddressInfo(SerializableModel):
    """Information about a KNX group address."""
    address: str
    name: str
    main_group_name: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    main_group_description: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    main_group_comment: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    middle_group_name: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    middle_group_description: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    middle_group_comment: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    description: Optional[str] = None
    comment: Optional[str] = None
    datapoint_type: Optional[str] = None
    # filled after all devices are resolved
    linked_devices: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.name} ({self.address})"


@dataclass
class BuildingDeviceRef(SerializableModel):
    """A device reference inside a building space."""
    instance_id: str
    address: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    name: Optional[str] = field(default=None, metadata=OMIT_EMPTY)


@dataclass
class BuildingSpace(SerializableModel):
    """Building structure node (Building, Floor, Room, ...)."""
    id: str
    space_type: str = "Space"
    name: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    number: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    default_line: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    description: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    completion_status: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    devices: List[BuildingDeviceRef] = field(default_factory=list)
    children: List["BuildingSpace"] = field(default_factory=list)

    def iter_spaces(self):
        """Yield this space and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.iter_spaces()


@dataclass
class ProjectTag(SerializableModel):
    text: str
    color: Optional[str] = field(default=None, metadata=OMIT_EMPTY)


@dataclass
class ProjectHistoryEntry(SerializableModel):
    date: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    user: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    text: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    detail: Optional[str] = field(default=None, metadata=OMIT_EMPTY)


@dataclass
class ProjectAttachment(SerializableModel):
    filename: str
    comment: Optional[str] = field(default=None, metadata=OMIT_EMPTY)


@dataclass
class ProjectInfo(SerializableModel):
    """Project metadata from ``ProjectInformation``."""
    name: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    project_type: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    project_number: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    contract_number: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    description: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    completion_status: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    archived_version: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    security_mode: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    codepage: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    last_modified: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    project_size: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    group_address_style: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    bcu_key: Optional[str] = field(default=None, metadata=OMIT_EMPTY)
    tags: List[ProjectTag] = field(default_factory=list, metadata=OMIT_EMPTY)
    history: List[ProjectHistoryEntry] = field(default_factory=list, metadata=OMIT_EMPTY)
    attachments: List[ProjectAttachment] = field(default_factory=list, metadata=OMIT_EMPTY)


@dataclass
class KnxProjectData(SerializableModel):
    """Data extracted from a KNX project archive."""
    project_name: str
    areas: List[AreaInfo] = field(default_factory=list)
    lines: List[LineInfo] = field(default_factory=list)
    devices: List[DeviceInfo] = field(default_factory=list)
    group_addresses: List[GroupAddressInfo] = field(default_factory=list)
    locations: List[BuildingSpace] = field(default_factory=list)
    project_info: Optional[ProjectInfo] = field(default=None, metadata=OMIT_EMPTY)

    def device_by_address(self, individual_address: str) -> Optional[DeviceInfo]:
        return next((d for d in self.devices if d.individual_address == individual_address), None)

    def group_address(self, address: str) -> Optional[GroupAddressInfo]:
        return next((ga for ga in self.group_addresses if ga.address == address), None)


__all__ = [
    'SerializableModel',
    'AreaInfo',
    'LineInfo',
    'ObjectFlags',
    'GroupLink',
    'DeviceConfigEntry',
    'DeviceInfo',
    'GroupAddressInfo',
    'BuildingDeviceRef',
    'BuildingSpace',
    'ProjectTag',
    'ProjectHistoryEntry',
    'ProjectAttachment',
    'ProjectInfo',
    'KnxProjectData',
]
