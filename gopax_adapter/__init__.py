"""Gopax REST adapter mapping exchange payloads onto a vendor-neutral trading model."""

__version__ = "0.1.0"
