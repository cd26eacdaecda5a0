[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sysutilkit"
version = "0.1.0"
description = "System and utility toolkit: A* search helpers, heap timers, buffer views, string and time helpers, socket address and socket helpers, host statistics and a readiness-based I/O multiplexer."
requires-python = ">=3.10"
keywords = ["astar", "timer", "buffer", "socket", "sockaddr", "multicast", "nio", "selectors", "sysapi"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: System :: Networking",
]
dependencies = [
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sysutilkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
