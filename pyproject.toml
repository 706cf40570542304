[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ashcore"
version = "0.1.0"
description = "Core pieces of a small POSIX-style shell: option handling, input stacking, mail checks, builtins and build-time table generators"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "sh", "ash", "posix", "getopts", "umask", "ulimit", "code-generation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ashcore-mkinit = "ashcore.mkinit:main"
ashcore-mksyntax = "ashcore.mksyntax:main"
ashcore-mknodes = "ashcore.mknodes:main"

[tool.hatch.build.targets.wheel]
packages = ["ashcore"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
