[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "armsim"
version = "0.1.0"
description = "A small AArch64 CPU simulator with a five-stage MIPS-style datapath, for teaching computer architecture"
requires-python = ">=3.10"
dependencies = []
keywords = ["arm", "aarch64", "simulator", "cpu", "datapath", "education", "computer-architecture"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["armsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
