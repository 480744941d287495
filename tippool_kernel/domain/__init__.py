"""Pure domain types for tip-pool allocation. Zero I/O."""
