import pytest

from x86bits.selectors import (
    CodeSegmentType,
    DataSegmentType,
    Ring,
    SegmentSelector,
    SystemDescriptorTypes32,
    SystemDescriptorTypes64,
)


@pytest.mark.parametrize("index", [0, 1, 5, 100, 0x1FFF])
@pytest.mark.parametrize("ring", list(Ring))
def test_from_index_round_trips_index(index, ring):
    sel = SegmentSelector.from_index(index, ring)
    assert sel.index() == index
    assert sel.bits & 0b11 == int(ring)
    assert not sel.contains(SegmentSelector.TI_LDT)


@pytest.mark.parametrize("bits", [0, 1, 0x8, 0x2B, 0xFFFF])
def test_from_raw_keeps_bits(bits):
    assert SegmentSelector.from_raw(bits).bits == bits
    assert SegmentSelector.from_raw(bits).index() == bits >> 3


def test_from_raw_rejects_out_of_range():
    with pytest.raises(ValueError):
        SegmentSelector.from_raw(0x10000)
    with pytest.raises(ValueError):
        SegmentSelector.from_raw(-1)


def test_from_index_rejects_negative():
    with pytest.raises(ValueError):
        SegmentSelector.from_index(-1, Ring.Ring0)


def test_contains_rpl_flags():
    sel = SegmentSelector.from_index(3, Ring.Ring3)
    assert sel.contains(SegmentSelector.RPL_0)
    assert sel.contains(SegmentSelector.RPL_1)
    assert sel.contains(SegmentSelector.RPL_2)
    assert sel.contains(SegmentSelector.RPL_3)
    kernel = SegmentSelector.from_index(3, Ring.Ring0)
    assert not kernel.contains(SegmentSelector.RPL_1)
    assert not kernel.contains(SegmentSelector.RPL_3)


def test_ldt_flag_combination():
    sel = SegmentSelector.from_index(2, Ring.Ring0) | SegmentSelector.TI_LDT
    assert sel.contains(SegmentSelector.TI_LDT)
    assert sel.index() == 2
    assert "LDT Table" in str(sel)


def test_str_kernel_gdt_selector():
    sel = SegmentSelector.from_index(1, Ring.Ring0)
    assert str(sel) == "Index 1 in GDT Table, Ring 0 segment selector."


def test_str_lists_every_contained_ring():
    text = str(SegmentSelector.from_index(4, Ring.Ring3))
    assert text.startswith("Index 4 in GDT Table, ")
    for level in range(4):
        assert f"Ring {level} segment selector." in text


def test_documented_type_codes():
    assert CodeSegmentType(0b1010) is CodeSegmentType.ExecuteRead
    assert DataSegmentType(0b0010) is DataSegmentType.ReadWrite
    assert SystemDescriptorTypes32(0b1001) is SystemDescriptorTypes32.TssAvailable32
    assert SystemDescriptorTypes64(0b1110) is SystemDescriptorTypes64.InterruptGate


def test_code_types_have_executable_bit_and_data_types_do_not():
    code_types = [CodeSegmentType(value) for value in range(0b1000, 0b10000)]
    data_types = [DataSegmentType(value) for value in range(0b0000, 0b1000)]
    assert all(t & 0b1000 for t in code_types)
    assert not any(t & 0b1000 for t in data_types)
    with pytest.raises(ValueError):
        CodeSegmentType(0b0010)
    with pytest.raises(ValueError):
        DataSegmentType(0b1010)


def test_reserved_system_types_rejected():
    with pytest.raises(ValueError):
        SystemDescriptorTypes64(0b0000)
    with pytest.raises(ValueError):
        SystemDescriptorTypes32(0b1000)