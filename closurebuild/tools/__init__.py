"""Filesystem, process and text helpers used by the compiler adapters."""
