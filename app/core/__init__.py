"""
Core Package - Survey Scoring Platform
app/core/__init__.py

Core infrastructure: exceptions. FastAPI dependencies live in
app.core.dependencies and are imported by the routers directly.
"""

from app.core.exceptions import (
    DevToolsDisabledException,
    ScoringEngineException,
    SemanticScorerException,
)

__all__ = [
    "DevToolsDisabledException",
    "ScoringEngineException",
    "SemanticScorerException",
]
