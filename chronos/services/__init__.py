"""
Service layer: consensus rules, status recalculation and entity operations.
"""
from chronos.services.consensus import resolve_common_dates, resolve_participant_status
from chronos.services.status_service import recalculate_participant_statuses, RecalculationResult

__all__ = [
    'resolve_common_dates',
    'resolve_participant_status',
    'recalculate_participant_statuses',
    'RecalculationResult',
]
