"""Segment selectors, privilege rings and descriptor type codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

_U16_MASK = 0xFFFF


class Ring(IntEnum):
    """x86 protection rings, from most (0) to least (3) privileged."""

    Ring0 = 0b00
    Ring1 = 0b01
    Ring2 = 0b10
    Ring3 = 0b11


@dataclass(frozen=True)
class SegmentSelector:
    """A 16-bit value selecting an entry of the GDT or LDT.

    Bits 0-1 hold the requestor privilege level, bit 2 the table
    indicator and bits 3-15 the descriptor index.
    """

    bits: int = 0

    RPL_0: ClassVar[SegmentSelector]
    RPL_1: ClassVar[SegmentSelector]
    RPL_2: ClassVar[SegmentSelector]
    RPL_3: ClassVar[SegmentSelector]
    TI_GDT: ClassVar[SegmentSelector]
    TI_LDT: ClassVar[SegmentSelector]

    def __post_init__(self) -> None:
        if not 0 <= self.bits <= _U16_MASK:
            raise ValueError(f"segment selector out of 16-bit range: {self.bits:#x}")

    @classmethod
    def from_index(cls, index: int, rpl: Ring) -> SegmentSelector:
        """Build a selector for `index` in the GDT with privilege level `rpl`."""
        if index < 0:
            raise ValueError("selector index must not be negative")
        return cls(((index << 3) | int(Ring(rpl))) & _U16_MASK)

    @classmethod
    def from_raw(cls, bits: int) -> SegmentSelector:
        """Wrap an untyped 16-bit value."""
        return cls(bits)

    def index(self) -> int:
        """Index of the selected entry in the GDT or LDT."""
        return self.bits >> 3

    def contains(self, other: SegmentSelector) -> bool:
        """True when every bit set in `other` is also set here."""
        return (self.bits & other.bits) == other.bits

    def __int__(self) -> int:
        return self.bits

    def __or__(self, other: SegmentSelector) -> SegmentSelector:
        if not isinstance(other, SegmentSelector):
            return NotImplemented
        return SegmentSelector(self.bits | other.bits)

    def __and__(self, other: SegmentSelector) -> SegmentSelector:
        if not isinstance(other, SegmentSelector):
            return NotImplemented
        return SegmentSelector(self.bits & other.bits)

    def __str__(self) -> str:
        rings = "".join(
            f"Ring {level} segment selector."
            for level, flag in enumerate(
                (self.RPL_0, self.RPL_1, self.RPL_2, self.RPL_3)
            )
            if self.contains(flag)
        )
        table = "LDT Table" if self.contains(self.TI_LDT) else "GDT Table"
        return f"Index {self.bits >> 3} in {table}, {rings}"


SegmentSelector.RPL_0 = SegmentSelector(0b00)
SegmentSelector.RPL_1 = SegmentSelector(0b01)
SegmentSelector.RPL_2 = SegmentSelector(0b10)
SegmentSelector.RPL_3 = SegmentSelector(0b11)
SegmentSelector.TI_GDT = SegmentSelector(0 << 2)
SegmentSelector.TI_LDT = SegmentSelector(1 << 2)


class SystemDescriptorTypes64(IntEnum):
    """System-segment and gate-descriptor types in 64-bit mode."""

    LDT = 0b0010
    TssAvailable = 0b1001
    TssBusy = 0b1011
    CallGate = 0b1100
    InterruptGate = 0b1110
    TrapGate = 0b1111


class SystemDescriptorTypes32(IntEnum):
    """System-segment and gate-descriptor types in 32-bit mode."""

    TSSAvailable16 = 0b0001
    LDT = 0b0010
    TSSBusy16 = 0b0011
    CallGate16 = 0b0100
    TaskGate = 0b0101
    InterruptGate16 = 0b0110
    TrapGate16 = 0b0111
    TssAvailable32 = 0b1001
    TssBusy32 = 0b1011
    CallGate32 = 0b1100
    InterruptGate32 = 0b1110
    TrapGate32 = 0b1111


class DataSegmentType(IntEnum):
    """Data-segment types for code and data descriptors."""

    ReadOnly = 0b0000
    ReadOnlyAccessed = 0b0001
    ReadWrite = 0b0010
    ReadWriteAccessed = 0b0011
    ReadExpand = 0b0100
    ReadExpandAccessed = 0b0101
    ReadWriteExpand = 0b0110
    ReadWriteExpandAccessed = 0b0111


class CodeSegmentType(IntEnum):
    """Code-segment types for code and data descriptors."""

    Execute = 0b1000
    ExecuteAccessed = 0b1001
    ExecuteRead = 0b1010
    ExecuteReadAccessed = 0b1011
    ExecuteConforming = 0b1100
    ExecuteConformingAccessed = 0b1101
    ExecuteReadConforming = 0b1110
    ExecuteReadConformingAccessed = 0b1111