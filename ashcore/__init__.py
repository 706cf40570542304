"""Parts of a small POSIX-style shell (options, input, mail checks, builtins) and its build-time generators."""

__version__ = "0.1.0"