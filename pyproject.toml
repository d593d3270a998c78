[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scbkit"
version = "0.1.0"
description = "Set up and maintain the Strategic Claude Basic framework layout, hook settings, MCP servers, Codex config and .gitignore entries in a project directory"
requires-python = ">=3.10"
dependencies = []
keywords = ["claude", "codex", "mcp", "scaffolding", "project-setup", "hooks", "gitignore"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["scbkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
