"""Transport layer - messaging platform adapters."""
