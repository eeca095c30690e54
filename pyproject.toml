[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "statusbar"
version = "1.1"
description = "A small status monitor that writes system information to stdout or the X root window name"
requires-python = ">=3.10"
dependencies = []
keywords = ["status", "statusbar", "monitor", "x11", "dwm", "system"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: X11 Applications",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
statusbar = "statusbar.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["statusbar"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
