"""snapdeck: web console for snapper snapshots."""

__version__ = "0.1.0"
