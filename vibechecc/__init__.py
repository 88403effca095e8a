"""vibechecc — dual-mode data tables for the vibechecc admin console."""

__version__ = "1.0.0"
