"""rulepack: resolve @path includes in security guideline documents."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rulepack")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
