"""polystore - one capability contract for heterogeneous object stores."""

__version__ = "0.1.0"
