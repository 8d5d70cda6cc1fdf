"""Collection services: extraction, single passes, and the dual-cycle scheduler."""
