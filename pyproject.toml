[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sonicbench"
version = "0.1.0"
description = "Sample-by-sample audio modules: accent envelope, resonator bank and EBU R128 loudness meter"
requires-python = ">=3.10"
keywords = ["audio", "dsp", "loudness", "ebu-r128", "envelope", "resonator", "lufs", "true-peak"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sonicbench"]

[tool.pytest.ini_options]
addopts = "-ra"
