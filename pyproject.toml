[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sanesystem"
version = "0.1.0"
description = "Snapshot and verify the integrity of files, command output and running processes"
requires-python = ">=3.10"
dependencies = []
keywords = ["integrity", "crc32", "intrusion-detection", "checksum", "audit"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sanesystem = "sanesystem.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["sanesystem"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
