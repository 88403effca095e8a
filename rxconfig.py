"""
vibechecc — Reflex configuration.

Admin table pages:
  /admin/tags   → client-mode table
  /admin/users  → server-mode table
  /admin/vibes  → virtualized table
"""

import reflex as rx

config = rx.Config(
    app_name="vibechecc",
    # Frontend port for dev server
    frontend_port=3000,
    # API / backend port
    backend_port=8000,
    # Telemetry
    telemetry_enabled=False,
    # Disable unused default plugins
    disable_plugins=["reflex.plugins.sitemap.SitemapPlugin"],
)
