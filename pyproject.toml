[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zumble"
version = "0.1.0"
description = "Core building blocks of a lightweight Mumble voice server: framing, voice packets, OCB-AES crypto and server state"
requires-python = ">=3.10"
keywords = ["mumble", "voip", "voice", "ocb", "aes", "protocol"]
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
    "Framework :: AsyncIO",
    "Topic :: Communications :: Internet Phone",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["zumble"]

[tool.pytest.ini_options]
addopts = "-ra"
