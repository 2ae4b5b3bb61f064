"""x86 segment selectors and descriptors, VMX failure errors and guest test protocol helpers."""

__version__ = "0.1.0"

__all__ = [
    "selectors",
    "vmx",
    "descriptors",
    "testfn",
    "hypervisor",
    "runner",
]