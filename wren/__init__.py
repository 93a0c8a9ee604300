"""Wren: content-addressed audio asset engine for silence trimming and SNR."""

from __future__ import annotations

__version__ = "0.1.0"
