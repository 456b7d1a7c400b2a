[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uprotokit"
version = "0.1.0"
description = "Data model, message builders, UUID and URI serializers, and an abstract transport for uProtocol messaging"
requires-python = ">=3.10"
dependencies = []
keywords = ["uprotocol", "messaging", "rpc", "pubsub", "uuid", "uri"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["uprotokit"]

[tool.pytest.ini_options]
addopts = "-ra"
