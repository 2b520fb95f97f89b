"""
Blockchain Interaction Package
Node liveness checks used before deploying
"""

from .readiness import ReadinessProber

__all__ = ['ReadinessProber']
