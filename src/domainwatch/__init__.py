"""domainwatch - domain subscription and periodic reporting engine."""

__version__ = "0.1.0"
