"""Capture Service.

Drives one long-lived headless Chromium session against a single target site,
replays a fixed tab click, captures the network response it triggers and
extracts session cookies plus the anti-forgery token from the resulting state.
"""

__version__ = "1.0.0"
