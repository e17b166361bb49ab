"""Splunk Event Reader: publish transaction monitoring on top of Splunk searches."""

__version__ = "1.0.0"
