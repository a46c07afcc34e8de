[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "remotelist"
version = "0.1.0"
description = "Named integer lists served over XML-RPC, with an operation log and periodic compressed snapshots"
requires-python = ">=3.10"
dependencies = []
keywords = ["rpc", "xml-rpc", "distributed", "list", "snapshot", "operation-log", "recovery"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
remotelist-server = "remotelist.server:main"
remotelist-client = "remotelist.client:main"
remotelist-exerciser = "remotelist.exerciser:main"

[tool.hatch.build.targets.wheel]
packages = ["remotelist"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
