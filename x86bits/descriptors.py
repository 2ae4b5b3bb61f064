"""Segment, gate, TSS and LDT descriptors for the GDT, LDT and IDT."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple, Union

from x86bits.selectors import (
    CodeSegmentType,
    DataSegmentType,
    Ring,
    SegmentSelector,
    SystemDescriptorTypes32,
    SystemDescriptorTypes64,
)

_U32_MASK = 0xFFFFFFFF
_U64_MASK = 0xFFFFFFFFFFFFFFFF

DescriptorType = Union[
    SystemDescriptorTypes64, SystemDescriptorTypes32, DataSegmentType, CodeSegmentType
]


def _check_u32(name: str, value: int) -> int:
    if not 0 <= value <= _U32_MASK:
        raise ValueError(f"{name} out of 32-bit range: {value:#x}")
    return value


def _check_u64(name: str, value: int) -> int:
    if not 0 <= value <= _U64_MASK:
        raise ValueError(f"{name} out of 64-bit range: {value:#x}")
    return value


def _bit(n: int) -> int:
    return 1 << n


@dataclass
class DescriptorBuilder:
    """Collects the settings of a descriptor; `finish` produces it.

    The flag methods modify the builder and return it, so calls chain.
    """

    base_limit: Optional[Tuple[int, int]] = None
    selector_offset: Optional[Tuple[SegmentSelector, int]] = None
    typ: Optional[DescriptorType] = None
    dpl_ring: Optional[Ring] = None
    is_present: bool = False
    avl_bit: bool = False
    db_bit: bool = False
    granularity_4k: bool = False
    long_mode: bool = False
    ist_index: int = 0

    @classmethod
    def with_base_limit(cls, base: int, limit: int) -> DescriptorBuilder:
        """Start a descriptor described by a base address and a limit."""
        return cls(base_limit=(_check_u64("base", base), _check_u64("limit", limit)))

    @classmethod
    def with_selector_offset(
        cls, selector: SegmentSelector, offset: int
    ) -> DescriptorBuilder:
        """Start a descriptor described by a segment selector and an offset."""
        return cls(selector_offset=(selector, _check_u64("offset", offset)))

    def _with_type(self, typ: DescriptorType) -> DescriptorBuilder:
        self.typ = typ
        return self

    @classmethod
    def tss_descriptor(cls, base: int, limit: int, available: bool) -> DescriptorBuilder:
        """A 32-bit TSS descriptor, available or busy."""
        typ = (
            SystemDescriptorTypes32.TssAvailable32
            if available
            else SystemDescriptorTypes32.TssBusy32
        )
        return cls.with_base_limit(base, limit)._with_type(typ)

    @classmethod
    def call_gate_descriptor(
        cls, selector: SegmentSelector, offset: int
    ) -> DescriptorBuilder:
        """A 32-bit call-gate descriptor."""
        return cls.with_selector_offset(
            selector, _check_u32("offset", offset)
        )._with_type(SystemDescriptorTypes32.CallGate32)

    @classmethod
    def interrupt_descriptor(
        cls, selector: SegmentSelector, offset: int
    ) -> DescriptorBuilder:
        """A 32-bit interrupt-gate descriptor."""
        return cls.with_selector_offset(
            selector, _check_u32("offset", offset)
        )._with_type(SystemDescriptorTypes32.InterruptGate32)

    @classmethod
    def trap_gate_descriptor(
        cls, selector: SegmentSelector, offset: int
    ) -> DescriptorBuilder:
        """A 32-bit trap-gate descriptor."""
        return cls.with_selector_offset(
            selector, _check_u32("offset", offset)
        )._with_type(SystemDescriptorTypes32.TrapGate32)

    @classmethod
    def task_gate_descriptor(cls, selector: SegmentSelector) -> DescriptorBuilder:
        """A task-gate descriptor (not available in IA-32e mode)."""
        return cls.with_selector_offset(selector, 0)._with_type(
            SystemDescriptorTypes32.TaskGate
        )

    @classmethod
    def code_descriptor(
        cls, base: int, limit: int, cst: CodeSegmentType
    ) -> DescriptorBuilder:
        """A 32-bit code-segment descriptor."""
        return cls.with_base_limit(
            _check_u32("base", base), _check_u32("limit", limit)
        )._with_type(CodeSegmentType(cst))

    @classmethod
    def data_descriptor(
        cls, base: int, limit: int, dst: DataSegmentType
    ) -> DescriptorBuilder:
        """A 32-bit data-segment descriptor."""
        return cls.with_base_limit(
            _check_u32("base", base), _check_u32("limit", limit)
        )._with_type(DataSegmentType(dst))

    @classmethod
    def ldt_descriptor(cls, base: int, limit: int) -> DescriptorBuilder:
        """A 32-bit LDT descriptor."""
        return cls.with_base_limit(
            _check_u32("base", base), _check_u32("limit", limit)
        )._with_type(SystemDescriptorTypes32.LDT)

    def limit_granularity_4kb(self) -> DescriptorBuilder:
        """Interpret the segment limit in 4-KByte units."""
        self.granularity_4k = True
        return self

    def present(self) -> DescriptorBuilder:
        """Mark the segment as present in memory."""
        self.is_present = True
        return self

    def dpl(self, ring: Ring) -> DescriptorBuilder:
        """Set the descriptor privilege level."""
        self.dpl_ring = Ring(ring)
        return self

    def avl(self) -> DescriptorBuilder:
        """Set the bit available to system software."""
        self.avl_bit = True
        return self

    def db(self) -> DescriptorBuilder:
        """Set the default operation size to 32 bits."""
        self.db_bit = True
        return self

    def l(self) -> DescriptorBuilder:  # noqa: E743
        """Mark the segment as a 64-bit code segment."""
        self.long_mode = True
        return self

    def ist(self, index: int) -> DescriptorBuilder:
        """Set the interrupt stack table index (0 to 7)."""
        if not 0 <= index <= 7:
            raise ValueError(f"IST index must be between 0 and 7, got {index}")
        self.ist_index = index
        return self

    def finish(self) -> Descriptor:
        """Build the 32-bit descriptor described by this builder."""
        desc = Descriptor()
        desc.apply_builder_settings(self)

        typ = self.typ
        if typ is None:
            raise ValueError("descriptor type was not set")
        if isinstance(typ, SystemDescriptorTypes64):
            raise ValueError("64-bit system types cannot be used on a 32-bit descriptor")
        if isinstance(typ, (DataSegmentType, CodeSegmentType)):
            desc.set_s()
        desc.set_type(int(typ))
        return desc


@dataclass
class Descriptor:
    """An 8-byte entry of the IDT, GDT or LDT, held as two 32-bit halves."""

    lower: int = 0
    upper: int = 0

    NULL: ClassVar[Descriptor]

    def __post_init__(self) -> None:
        _check_u32("lower", self.lower)
        _check_u32("upper", self.upper)

    def as_u64(self) -> int:
        """The descriptor as one 64-bit value."""
        return (self.upper << 32) | self.lower

    def apply_builder_settings(self, builder: DescriptorBuilder) -> None:
        """Write every field the builder sets except the type."""
        if builder.dpl_ring is not None:
            self.set_dpl(builder.dpl_ring)
        if builder.base_limit is not None:
            base, limit = builder.base_limit
            self.set_base_limit(base & _U32_MASK, limit & _U32_MASK)
        if builder.selector_offset is not None:
            selector, offset = builder.selector_offset
            self.set_selector_offset(selector, offset & _U32_MASK)
        if builder.is_present:
            self.set_p()
        if builder.avl_bit:
            self.set_avl()
        if builder.db_bit:
            self.set_db()
        if builder.granularity_4k:
            self.set_g()
        if builder.long_mode:
            self.set_l()

    def set_base_limit(self, base: int, limit: int) -> None:
        """Write the base and limit fields of a segment, TSS or LDT descriptor."""
        _check_u32("base", base)
        _check_u32("limit", limit)
        self.lower = 0
        self.upper &= 0x00F0FF00

        self.lower |= (base << 16) & _U32_MASK
        self.upper |= (base >> 16) & 0xFF
        self.upper |= (base >> 24) << 24

        self.lower |= limit & 0xFFFF
        self.upper |= ((limit >> 16) & 0x0F) << 16

    def set_selector_offset(self, selector: SegmentSelector, offset: int) -> None:
        """Write the selector and offset fields of a gate descriptor."""
        _check_u32("offset", offset)
        self.lower = 0
        self.upper &= 0x0000FFFF

        self.lower |= (selector.bits << 16) & _U32_MASK
        self.lower |= offset & 0x0000FFFF
        self.upper |= offset & 0xFFFF0000

    def set_type(self, typ: int) -> None:
        """Write the 4-bit type field (bits 8-11 of the upper half)."""
        self.upper &= ~(0x0F << 8) & _U32_MASK
        self.upper |= (int(typ) & 0x0F) << 8

    def set_s(self) -> None:
        """Mark the descriptor as a code or data segment."""
        self.upper |= _bit(12)

    def set_dpl(self, ring: Ring) -> None:
        """Write the descriptor privilege level."""
        level = int(Ring(ring))
        self.upper &= ~(0b11 << 13) & _U32_MASK
        self.upper |= level << 13

    def set_p(self) -> None:
        """Set the present bit."""
        self.upper |= _bit(15)

    def set_avl(self) -> None:
        """Set the bit available to system software."""
        self.upper |= _bit(20)

    def set_l(self) -> None:
        """Set the 64-bit code segment bit."""
        self.upper |= _bit(21)

    def set_db(self) -> None:
        """Set the default operation size bit."""
        self.upper |= _bit(22)

    def set_g(self) -> None:
        """Set the granularity bit (limit in 4-KByte units)."""
        self.upper |= _bit(23)

    def __str__(self) -> str:
        return f"Descriptor({self.as_u64():#x})"


Descriptor.NULL = Descriptor(0, 0)