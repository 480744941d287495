"""
Tip Pool Kernel

Shared foundation for the tip-pool allocation engines:
- Immutable domain value types (servers, pools, workers, results)
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
