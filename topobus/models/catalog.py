"""Manufacturer catalog definitions.

These are the shared templates loaded from ``M-*/Hardware.xml`` and
``M-*/<application program>.xml``. Device instances in the installation
document only reference them by id.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from topobus.models import ObjectFlags


@dataclass
class Flags:
    """Tri-state communication object flags.

    ``None`` means the attribute was not present on the element, which lets
    a reference fall back to its template bit by bit.
    """
    communication: Optional[bool] = None
    read: Optional[bool] = None
    write: Optional[bool] = None
    transmit: Optional[bool] = None
    update: Optional[bool] = None
    read_on_init: Optional[bool] = None

    NAMES = ("communication", "read", "write", "transmit", "update", "read_on_init")

    def with_fallback(self, fallback: Optional["Flags"]) -> "Flags":
        """Combine per bit: own value first, else the fallback's value."""
        if fallback is None:
            return Flags(**{name: getattr(self, name) for name in self.NAMES})
        merged = {}
        for name in self.NAMES:
            value = getattr(self, name)
            merged[name] = value if value is not None else getattr(fallback, name)
        return Flags(**merged)

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.NAMES)

    def to_model_flags(self) -> Optional[ObjectFlags]:
        """Convert to ``ObjectFlags``; unset bits become False.

        Returns:
            None when no bit is set at all
        """
        if self.is_empty():
            return None
        return ObjectFlags(**{name: bool(getattr(self, name)) for name in self.NAMES})


@dataclass
class ComObjectDef:
    """``ComObject`` template of an application program."""
    id: str
    name: Optional[str] = None
    text: Optional[str] = None
    function_text: Optional[str] = None
    description: Optional[str] = None
    datapoint_type: Optional[str] = None
    object_size: Optional[str] = None
    number: Optional[int] = None
    base_number_argument_ref: Optional[str] = None
    flags: Flags = field(default_factory=Flags)


@dataclass
class ComObjectRefDef:
    """``ComObjectRef``: device-class specific override of a ``ComObject``."""
    id: str
    ref_id: Optional[str] = None
    name: Optional[str] = None
    text: Optional[str] = None
    function_text: Optional[str] = None
    description: Optional[str] = None
    datapoint_type: Optional[str] = None
    object_size: Optional[str] = None
    number: Optional[int] = None
    channel: Optional[str] = None
    flags: Flags = field(default_factory=Flags)


@dataclass
class ParameterTypeDef:
    """``ParameterType`` with either a ``TypeRestriction`` or ``TypeNumber``."""
    id: str
    name: Optional[str] = None
    kind: str = "Unknown"  # "Enum", "Number" or "Unknown"
    size_in_bit: Optional[int] = None
    base: Optional[str] = None
    number_type: Optional[str] = None
    min_inclusive: Optional[int] = None
    max_inclusive: Optional[int] = None
    enum_values: Dict[str, str] = field(default_factory=dict)


@dataclass
class ParameterDef:
    id: str
    name: Optional[str] = None
    text: Optional[str] = None
    parameter_type: Optional[str] = None


@dataclass
class ParameterRefDef:
    id: str
    ref_id: Optional[str] = None
    name: Optional[str] = None
    text: Optional[str] = None
    value: Optional[str] = None
    tag: Optional[str] = None
    display_order: Optional[int] = None


@dataclass
class AllocatorDef:
    id: str
    start: Optional[int] = None
    max_inclusive: Optional[int] = None


@dataclass
class ModuleArgumentDef:
    """``Argument`` of a module definition, with its allocation size."""
    id: str
    name: Optional[str] = None
    allocates: Optional[int] = None


@dataclass
class NumericArgDef:
    """``NumericArg`` of a module definition."""
    ref_id: str
    allocator_ref_id: Optional[str] = None
    base_value: Optional[str] = None
    value: Optional[int] = None


@dataclass
class AppProgramInfo:
    name: Optional[str] = None
    version: Optional[str] = None
    number: Optional[str] = None
    program_type: Optional[str] = None
    mask_version: Optional[str] = None


@dataclass
class AppProgram:
    """Everything loaded from one application program document.

    Keys of the template maps have the ``{app_id}_`` prefix stripped, except
    ``allocators`` and ``module_arguments`` which keep full ids.
    """
    id: str
    prefix: str = ""
    info: AppProgramInfo = field(default_factory=AppProgramInfo)
    arguments: Dict[str, str] = field(default_factory=dict)
    com_objects: Dict[str, ComObjectDef] = field(default_factory=dict)
    com_object_refs: Dict[str, ComObjectRefDef] = field(default_factory=dict)
    parameters: Dict[str, ParameterDef] = field(default_factory=dict)
    parameter_types: Dict[str, ParameterTypeDef] = field(default_factory=dict)
    parameter_refs: Dict[str, ParameterRefDef] = field(default_factory=dict)
    parameter_ref_context: Dict[str, str] = field(default_factory=dict)
    allocators: Dict[str, AllocatorDef] = field(default_factory=dict)
    module_arguments: Dict[str, ModuleArgumentDef] = field(default_factory=dict)
    numeric_args: Dict[str, NumericArgDef] = field(default_factory=dict)


@dataclass
class Product:
    id: str
    name: Optional[str] = None
    order_number: Optional[str] = None


@dataclass
class HardwareCatalog:
    """Everything loaded from one ``M-*/Hardware.xml``."""
    manufacturer_id: str
    products: Dict[str, Product] = field(default_factory=dict)
    hardware2program: Dict[str, str] = field(default_factory=dict)
    coupler_flags: Dict[str, bool] = field(default_factory=dict)

    def is_coupler(self, *refs: Optional[str]) -> bool:
        return any(self.coupler_flags.get(ref, False) for ref in refs if ref)
