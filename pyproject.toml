[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pktframe"
version = "0.1.0"
description = "Framed binary packets with header, length, command, payload and CRC-32 trailer"
requires-python = ">=3.10"
keywords = ["packet", "framing", "serialization", "crc32", "protocol", "binary"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: System :: Networking",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pktframe-demo = "pktframe.demo:main"

[tool.hatch.build.targets.wheel]
packages = ["pktframe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
