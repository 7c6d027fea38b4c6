"""
NimbusSDK public wrapper

This package gates the proprietary NimbusSDK core behind a license key. It
validates the key with the Nimbus license server, exchanges it for repository
access, installs the core with pip and exposes the core's capabilities once
loaded. A valid license key from https://nimbusbci.com is required.
"""

__version__ = "1.0.0"
