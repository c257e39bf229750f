"""
Service layer: rally recording sessions and the diagnostic workflow.
Domain rules live in badminton.rally_tracker and badminton.diagnostic; services
orchestrate persistence.
"""
from .tracking_service import TrackingSession
from .diagnostic_service import DiagnosticService

__all__ = [
    "TrackingSession",
    "DiagnosticService",
]
