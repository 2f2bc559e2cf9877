"""I/O and small helpers for the happy moments toolchain."""
