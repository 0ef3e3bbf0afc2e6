"""Keyless asset and documentation search proxy."""
