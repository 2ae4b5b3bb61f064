# x86bits

Building blocks for working with x86 system structures from Python:

- `x86bits.selectors`: the `Ring` privilege levels, `SegmentSelector`
  and the descriptor type enumerations `SystemDescriptorTypes64`,
  `SystemDescriptorTypes32`, `DataSegmentType` and `CodeSegmentType`.
- `x86bits.descriptors`: a chainable `DescriptorBuilder` and the 8-byte
  `Descriptor` it produces for GDT, LDT and IDT entries.
- `x86bits.vmx`: the `VmFail` exception and its subclasses `VmFailValid`
  and `VmFailInvalid` for VMX instruction failures.
- `x86bits.testfn`: `X86TestFn`, the description of a guest test, and the
  `x86test` decorator that creates one.
- `x86bits.hypervisor`: the guest I/O-port protocol (`handle_ioexit`,
  `IoDirection`, `IoHandleStatus`, `UnexpectedRead`, `UnexpectedWrite`),
  the line-buffering `SerialPrinter` and the page allocator
  `PhysicalMemory`.
- `x86bits.runner`: the progress and summary output of a test runner.

## Installing

```
pip install .
```

For running the test suite:

```
pip install .[test]
pytest
```

## Building a flat GDT

```python
from x86bits.selectors import Ring, CodeSegmentType
from x86bits.descriptors import DescriptorBuilder

code_kernel = (
    DescriptorBuilder.code_descriptor(0, 0xFFFFF, CodeSegmentType.ExecuteRead)
    .present()
    .dpl(Ring.Ring0)
    .limit_granularity_4kb()
    .db()
    .finish()
)
assert code_kernel.as_u64() == 0x00CF9A000000FFFF
print(code_kernel)  # Descriptor(0xcf9a000000ffff)
```

Gate descriptors are built from a selector and an offset, for example
`DescriptorBuilder.interrupt_descriptor(selector, 0x1000)`. `finish()`
raises `ValueError` when no type was set or when a 64-bit system type is
used; `ist()` raises `ValueError` for an index outside 0 to 7.

## Segment selectors

```python
from x86bits.selectors import Ring, SegmentSelector

sel = SegmentSelector.from_index(1, Ring.Ring3)
print(sel.bits)     # 11
print(sel.index())  # 1
print(sel.contains(SegmentSelector.TI_LDT))  # False
```

`SegmentSelector.from_raw(bits)` wraps any 16-bit value; values outside
that range raise `ValueError`.

## Guest tests and the I/O protocol

```python
from x86bits.testfn import x86test
from x86bits.hypervisor import IoDirection, IoStatusKind, SerialPrinter, handle_ioexit

@x86test(ioport=(0x1, 0xFE))
def use_the_port():
    pass

printer = SerialPrinter()
status = handle_ioexit(use_the_port, IoDirection.IN, 0x1, 0, printer)
assert status.kind is IoStatusKind.HANDLED and status.rax == 0xFE

status = handle_ioexit(use_the_port, IoDirection.OUT, 0xF4, 0x00, printer)
assert status.kind is IoStatusKind.TEST_SUCCESSFUL
```

A guest writes `0x00` to port `0xf4` to signal success and any other value
to signal a panic (`IoStatusKind.TEST_PANIC`, with the value in `code`).
Bytes written to port `0x3f8` go to the `SerialPrinter`, which prints a
line at a time; writes to `0x2f8` are ignored. Reads of the serial status
ports `0x3fd` and `0x2fd` return `0x20`. Any other access, and any write
to the test's `ioport` of a value other than the one configured, raises
`UnexpectedRead` or `UnexpectedWrite`.

`PhysicalMemory(offset)` hands out 4 KiB pages from a 4 MiB region and
raises `MemoryError` when it runs out.

The `x86bits.runner` functions print the runner's report lines
(`test_start`, `test_before_run`, `test_success`, `test_failed`,
`test_ignored`); `test_summary` exits with status 101 when any test failed.

## What this package does not do

- It does not start or run virtual machines: `handle_ioexit` classifies a
  single port access that a caller has already observed, and the runner
  functions only print.
- It does not read or write segment, task or control registers, and it
  does not include VMCS field encodings or VM-execution, VM-entry or
  VM-exit control bit definitions.