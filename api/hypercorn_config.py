"""
Hypercorn configuration file.

Run with: hypercorn api.index:app --config python:api.hypercorn_config
"""
import os

# Read port from environment, default to 8000
port = os.getenv("PORT", "8000")

# Bind to all interfaces on the configured port
bind = [f"0.0.0.0:{port}"]

# Keep-alive timeout (seconds)
keep_alive = 120
