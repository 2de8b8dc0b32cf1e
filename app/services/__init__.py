"""
Services module for the Survey Scoring Platform.
"""

from app.services.scoring_service import ScoringService, get_scoring_service

__all__ = ["ScoringService", "get_scoring_service"]
