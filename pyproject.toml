[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rosenpass"
version = "0.1.0"
description = "Parts of a post-quantum key exchange daemon: byte-buffer lenses, a KEM interface, UDP endpoint discovery and WireGuard key output"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "cryptography",
    "key-exchange",
    "post-quantum",
    "kem",
    "wireguard",
    "udp",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rosenpass"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
