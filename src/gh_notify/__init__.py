"""gh-notify - browse your GitHub notifications from the terminal."""

__version__ = "0.1.0"
