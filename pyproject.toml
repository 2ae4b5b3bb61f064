[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "x86bits"
version = "0.1.0"
description = "x86 segment selectors and descriptors, VMX failure errors and a guest test I/O protocol model"
requires-python = ">=3.10"
dependencies = []
keywords = ["x86", "x86-64", "segmentation", "gdt", "idt", "ldt", "descriptor", "selector", "vmx"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["x86bits"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
