"""Kernel: validation engine and tool-facing collaborators."""
