"""Guest memory, serial output and I/O-exit handling for guest tests."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TextIO

from x86bits.testfn import X86TestFn

BASE_PAGE_SIZE = 4096
DEFAULT_REGION_SIZE = 4 * (1 << 20)

SERIAL_DATA_PORT = 0x3F8
SERIAL_STATUS_PORT = 0x3FD
SECONDARY_SERIAL_DATA_PORT = 0x2F8
SECONDARY_SERIAL_STATUS_PORT = 0x2FD
EXIT_PORT = 0xF4
SERIAL_READY = 0x20


class PhysicalMemory:
    """A region handed out page by page as guest "physical" memory."""

    def __init__(self, offset: int, size: int = DEFAULT_REGION_SIZE) -> None:
        if offset < 0:
            raise ValueError("offset must not be negative")
        if size < 0:
            raise ValueError("size must not be negative")
        self.offset = offset
        self.size = size
        self.allocated = 0

    def __len__(self) -> int:
        return self.size

    def alloc_pages(self, how_many: int) -> int:
        """Reserve `how_many` consecutive pages and return their address."""
        if how_many < 0:
            raise ValueError("page count must not be negative")
        to_allocate = how_many * BASE_PAGE_SIZE
        if self.allocated + to_allocate > self.size:
            raise MemoryError("OOM")
        address = self.offset + self.allocated
        self.allocated += to_allocate
        return address


class SerialPrinter:
    """Collects bytes written to the serial port and prints whole lines."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self.buffer = ""

    def _out(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def write(self, data: bytes) -> int:
        """Take exactly one byte; print the buffered line on a newline."""
        if len(data) != 1:
            raise ValueError("serial printer takes exactly one byte at a time")
        char = chr(data[0])
        self.buffer += char
        if char == "\n":
            self._out().write(self.buffer)
            self.buffer = ""
        return 1

    def flush(self) -> None:
        """Print whatever is buffered and clear the buffer."""
        self._out().write(self.buffer)
        self.buffer = ""


class IoDirection(Enum):
    """Direction of a port access by the guest."""

    IN = "in"
    OUT = "out"


class IoStatusKind(Enum):
    """Outcome of handling one I/O exit."""

    HANDLED = "handled"
    TEST_SUCCESSFUL = "test_successful"
    TEST_PANIC = "test_panic"


@dataclass(frozen=True)
class IoHandleStatus:
    """Result of an I/O exit.

    `rax` is the value to load into the guest's RAX after a port read;
    `code` is the exit code of a panicking test.
    """

    kind: IoStatusKind
    code: int = 0
    rax: Optional[int] = None

    @classmethod
    def handled(cls, rax: Optional[int] = None) -> IoHandleStatus:
        return cls(IoStatusKind.HANDLED, rax=rax)

    @classmethod
    def successful(cls) -> IoHandleStatus:
        return cls(IoStatusKind.TEST_SUCCESSFUL)

    @classmethod
    def panic(cls, code: int) -> IoHandleStatus:
        return cls(IoStatusKind.TEST_PANIC, code=code & 0xFF)


class IoHandleError(Exception):
    """The guest accessed a port the test did not expect."""


class UnexpectedWrite(IoHandleError):
    """The guest wrote an unexpected value or to an unexpected port."""

    def __init__(self, port: int, value: int) -> None:
        super().__init__(f"unexpected write of {value:#x} to port {port:#x}")
        self.port = port
        self.value = value


class UnexpectedRead(IoHandleError):
    """The guest read from an unexpected port."""

    def __init__(self, port: int) -> None:
        super().__init__(f"unexpected read from port {port:#x}")
        self.port = port


def handle_ioexit(
    meta: X86TestFn,
    direction: IoDirection,
    port: int,
    rax: int,
    printer: SerialPrinter,
) -> IoHandleStatus:
    """Handle a guest port access for the test described by `meta`.

    Raises `UnexpectedRead` or `UnexpectedWrite` for accesses the test
    does not allow.
    """
    enable_port, enable_value = meta.ioport_enable
    if direction is IoDirection.IN:
        if port in (SERIAL_STATUS_PORT, SECONDARY_SERIAL_STATUS_PORT):
            return IoHandleStatus.handled(rax=SERIAL_READY)
        if port == enable_port:
            return IoHandleStatus.handled(rax=enable_value)
        raise UnexpectedRead(port)

    if port == SERIAL_DATA_PORT:
        printer.write(bytes([rax & 0xFF]))
        return IoHandleStatus.handled()
    if port == SECONDARY_SERIAL_DATA_PORT:
        return IoHandleStatus.handled()
    if port == EXIT_PORT and rax & 0xFF == 0:
        return IoHandleStatus.successful()
    if port == enable_port and rax == enable_value:
        return IoHandleStatus.handled()
    if port == EXIT_PORT:
        return IoHandleStatus.panic(rax)
    raise UnexpectedWrite(port, rax & 0xFFFFFFFF)