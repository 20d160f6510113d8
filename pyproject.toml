[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinysys"
version = "0.1.0"
description = "A tiny interactive shell with job control, aliases and pipelines"
requires-python = ">=3.11"
dependencies = []
keywords = ["shell", "job control", "pipelines", "aliases", "teaching"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tsh = "tinysys.tsh:main"
myspin = "tinysys.spintools:myspin_main"
mysplit = "tinysys.spintools:mysplit_main"
mystop = "tinysys.spintools:mystop_main"

[tool.hatch.build.targets.wheel]
packages = ["tinysys"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
