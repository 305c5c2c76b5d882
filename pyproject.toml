[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "umicheck"
version = "0.1.3"
description = "UMI presence validator: checks whether the UMI from a read header also appears in the read sequence"
requires-python = ">=3.10"
dependencies = []
keywords = ["umi", "fastq", "bam", "sam", "sequencing", "bioinformatics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
umicheck = "umicheck.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["umicheck"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
