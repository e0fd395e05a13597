"""Build and run command lines from arguments read on standard input."""

__version__ = "0.7.0"