# =============================================================================
# src/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line tools for bookbites.  ``main.py`` holds every subcommand
# (ingest, status, documents, delete, window, feed, random, search) and is
# what ``python -m src.cli`` runs.
#
# Architecture Notes:
#   - Providers are built by small ``_build_*`` factories with deferred
#     imports, so read-only commands never load the LLM SDKs.
#   - Configuration comes from Settings (config/config.yaml, .env and
#     environment variables).
# =============================================================================
