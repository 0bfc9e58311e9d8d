"""Pull-request flow metrics: opened vs. merged over trailing windows."""

__version__ = "0.1.0"
