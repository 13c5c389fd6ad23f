[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shadowdemo"
version = "0.1.0"
description = "Device shadow topics, update documents, message handling and retry bookkeeping for MQTT clients."
requires-python = ">=3.10"
dependencies = []
keywords = ["mqtt", "iot", "device-shadow", "backoff", "json"]
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
    "Topic :: Internet",
    "Topic :: Communications",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["shadowdemo"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
