"""Errors reported by VMX instructions."""


class VmFail(Exception):
    """A VMX instruction failed (the VMfail pseudo-function)."""

    valid: bool = False


class VmFailValid(VmFail):
    """The VMCS pointer is valid but another error occurred.

    The VM-instruction error field of the VMCS holds the details.
    """

    valid = True


class VmFailInvalid(VmFail):
    """The VMCS pointer is not valid."""

    valid = False