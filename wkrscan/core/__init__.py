"""Kjøringsinfrastruktur som deles av parser og filtre."""

from .memory import MemoryController, MemoryInfo, is_memory_error, read_process_memory

__all__ = ["MemoryController", "MemoryInfo", "is_memory_error", "read_process_memory"]
