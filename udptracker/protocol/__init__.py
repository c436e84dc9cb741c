"""UDP tracker wire protocol (BEP 15) and connection token state."""
