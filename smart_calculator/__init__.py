"""Interactive arbitrary-precision integer calculator with variables."""
