[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vswitchctl"
version = "0.1.0"
description = "Build and parse Open vSwitch actions, read flow statistics and drive ovs-dpctl from Python"
requires-python = ">=3.10"
dependencies = []
keywords = ["openvswitch", "ovs", "openflow", "sdn", "networking", "ovs-dpctl", "conntrack"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vswitchctl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
