"""CLI module for sidecar."""
