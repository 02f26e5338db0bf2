"""Shared contracts for the YouthTrack platform.

Provides the Pydantic models that cross component boundaries (auth, profiles,
provisioning), the Temporal client connection factory, and task queue constants.
"""
