"""Test descriptions for guest tests and the decorator that creates them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

_U16_MASK = 0xFFFF
_U32_MASK = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF


@dataclass(frozen=True)
class X86TestFn:
    """A test function with the settings under which it runs in a guest."""

    name: str
    testfn: Callable[[], Any]
    ignore: bool = False
    identity_map: bool = True
    physical_memory: Tuple[int, int] = (0, 0)
    ioport_enable: Tuple[int, int] = (0, 0)
    should_panic: bool = False
    should_halt: bool = False

    def __call__(self) -> Any:
        return self.testfn()


def _two_ints(option: str, args: Any) -> Tuple[int, int]:
    try:
        items = tuple(args)
    except TypeError:
        raise TypeError(f"{option}: needs two numbers as parameters") from None
    if len(items) != 2:
        raise ValueError(f"{option}: needs two numbers as parameters")
    first, second = items
    for position, value in (("first", first), ("second", second)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{option}: {position} parameter not an int literal")
        if not 0 <= value <= _U64_MAX:
            raise ValueError(f"{option}: {position} parameter out of range")
    return first, second


def x86test(
    func: Optional[Callable[[], Any]] = None,
    *,
    ram: Tuple[int, int] = (0, 0),
    ioport: Tuple[int, int] = (0, 0),
    should_panic: bool = False,
    should_halt: bool = False,
) -> Union[X86TestFn, Callable[[Callable[[], Any]], X86TestFn]]:
    """Turn a function into an `X86TestFn`.

    Use bare as ``@x86test`` or with options as ``@x86test(ram=(a, b))``.
    `ioport` gives a port and the value read from it; the port is cut
    to 16 bits and the value to 32 bits.
    """
    physical_memory = _two_ints("ram", ram)
    port, value = _two_ints("ioport", ioport)
    ioport_enable = (port & _U16_MASK, value & _U32_MASK)

    def build(f: Callable[[], Any]) -> X86TestFn:
        if not callable(f):
            raise TypeError("x86test must decorate a function")
        return X86TestFn(
            name=f.__name__,
            testfn=f,
            ignore=False,
            identity_map=True,
            physical_memory=physical_memory,
            ioport_enable=ioport_enable,
            should_panic=bool(should_panic),
            should_halt=bool(should_halt),
        )

    if func is None:
        return build
    return build(func)