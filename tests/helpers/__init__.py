"""Test helper modules for the previewhost test suite.

- http: minimal HTTP(S) client returning (status, headers, body)
- ports: locating and occupying local ports
"""
from __future__ import annotations

from helpers.http import Response, fetch
from helpers.ports import find_free_port_range, occupy_port

__all__ = ["Response", "fetch", "find_free_port_range", "occupy_port"]
