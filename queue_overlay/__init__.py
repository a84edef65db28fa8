"""Queue Overlay - now playing widget server"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("queue-overlay")
except PackageNotFoundError:
    __version__ = "dev"
