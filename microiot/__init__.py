"""Micro-IoT generator — pin allocation and Arduino sketch synthesis for ESP boards."""

__version__ = "0.1.0"
