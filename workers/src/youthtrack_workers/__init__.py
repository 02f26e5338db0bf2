"""Temporal worker runner for YouthTrack background components.

The same image serves every component; the CLI argument (or COMPONENT env var)
selects which activities the worker exposes.
"""
