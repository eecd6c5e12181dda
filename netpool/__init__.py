"""Netpool: IP pool and assignment management API for ISP back offices."""

__version__ = "1.0.0"
