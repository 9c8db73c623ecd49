[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zmux"
version = "0.1.0"
description = "Channel management for remux media relays: Redis-backed channel store, systemd unit control and Flask HTTP handlers"
requires-python = ">=3.10"
keywords = ["remux", "ffmpeg", "mpegts", "udp", "systemd", "redis", "streaming", "channels", "flask"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "redis",
    "flask",
    "jinja2",
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["zmux"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
