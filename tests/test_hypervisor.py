import io

import pytest

from x86bits.hypervisor import (
    IoDirection,
    IoHandleError,
    IoHandleStatus,
    IoStatusKind,
    PhysicalMemory,
    SerialPrinter,
    UnexpectedRead,
    UnexpectedWrite,
    handle_ioexit,
)
from x86bits.testfn import x86test


@x86test(ioport=(0x1, 0xFE))
def use_the_port():
    return None


@x86test(ram=(0x30000000, 0x31000000))
def print_works():
    return None


@x86test(should_panic=True)
def panic_test():
    return None


def _printer():
    stream = io.StringIO()
    return SerialPrinter(stream), stream


def test_physical_memory_length_is_four_mib():
    mem = PhysicalMemory(0x3000000)
    assert len(mem) == 4 * (1 << 20)


def test_alloc_pages_hands_out_consecutive_pages():
    mem = PhysicalMemory(0x9000000)
    first = mem.alloc_pages(1)
    second = mem.alloc_pages(2)
    third = mem.alloc_pages(1)
    assert first == 0x9000000
    assert second == first + 4096
    assert third == second + 2 * 4096


def test_alloc_pages_out_of_memory():
    mem = PhysicalMemory(0x6000000, size=2 * 4096)
    mem.alloc_pages(2)
    with pytest.raises(MemoryError, match="OOM"):
        mem.alloc_pages(1)


def test_alloc_whole_region_then_fail():
    mem = PhysicalMemory(0)
    assert mem.alloc_pages(len(mem) // 4096) == 0
    with pytest.raises(MemoryError):
        mem.alloc_pages(1)


def test_serial_printer_buffers_until_newline():
    printer, stream = _printer()
    for byte in b"sprintln! works":
        assert printer.write(bytes([byte])) == 1
    assert stream.getvalue() == ""
    printer.write(b"\n")
    assert stream.getvalue() == "sprintln! works\n"
    assert printer.buffer == ""


def test_serial_printer_flush_writes_partial_line():
    printer, stream = _printer()
    for byte in b"sprint!, ":
        printer.write(bytes([byte]))
    printer.flush()
    assert stream.getvalue() == "sprint!, "
    assert printer.buffer == ""


def test_serial_printer_rejects_multiple_bytes():
    printer, _ = _printer()
    with pytest.raises(ValueError):
        printer.write(b"ab")


def test_read_enabled_port_returns_configured_value():
    printer, _ = _printer()
    status = handle_ioexit(use_the_port, IoDirection.IN, 0x1, 0, printer)
    assert status.kind is IoStatusKind.HANDLED
    assert status.rax == 0xFE


@pytest.mark.parametrize("port", [0x3FD, 0x2FD])
def test_serial_status_reads_ready(port):
    printer, _ = _printer()
    status = handle_ioexit(print_works, IoDirection.IN, port, 0, printer)
    assert status == IoHandleStatus.handled(rax=0x20)


def test_unexpected_read_raises():
    printer, _ = _printer()
    with pytest.raises(UnexpectedRead) as info:
        handle_ioexit(print_works, IoDirection.IN, 0x60, 0, printer)
    assert info.value.port == 0x60
    assert isinstance(info.value, IoHandleError)


def test_serial_output_goes_to_printer():
    printer, stream = _printer()
    for byte in b"hi\n":
        status = handle_ioexit(print_works, IoDirection.OUT, 0x3F8, byte, printer)
        assert status.kind is IoStatusKind.HANDLED
    assert stream.getvalue() == "hi\n"


def test_secondary_serial_output_is_ignored():
    printer, stream = _printer()
    status = handle_ioexit(print_works, IoDirection.OUT, 0x2F8, ord("x"), printer)
    assert status.kind is IoStatusKind.HANDLED
    printer.flush()
    assert stream.getvalue() == ""


def test_exit_port_zero_means_success():
    printer, _ = _printer()
    status = handle_ioexit(print_works, IoDirection.OUT, 0xF4, 0x00, printer)
    assert status.kind is IoStatusKind.TEST_SUCCESSFUL


def test_kpanic_code_is_reported():
    printer, _ = _printer()
    status = handle_ioexit(panic_test, IoDirection.OUT, 0xF4, 0x02, printer)
    assert status.kind is IoStatusKind.TEST_PANIC
    assert status.code == 0x02


def test_kassert_failure_code_is_reported():
    printer, _ = _printer()
    status = handle_ioexit(use_the_port, IoDirection.OUT, 0xF4, 0x01, printer)
    assert status == IoHandleStatus.panic(1)


def test_write_of_enabled_value_is_handled():
    printer, _ = _printer()
    status = handle_ioexit(use_the_port, IoDirection.OUT, 0x1, 0xFE, printer)
    assert status.kind is IoStatusKind.HANDLED


def test_write_of_wrong_value_raises():
    printer, _ = _printer()
    with pytest.raises(UnexpectedWrite) as info:
        handle_ioexit(use_the_port, IoDirection.OUT, 0x1, 0xFF, printer)
    assert info.value.port == 0x1
    assert info.value.value == 0xFF