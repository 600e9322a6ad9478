"""Cleanup pipeline for the nginx-demo application."""

from .orchestrator import CleanupOptions, CleanupOrchestrator, CleanupResult

__all__ = ["CleanupOptions", "CleanupOrchestrator", "CleanupResult"]
