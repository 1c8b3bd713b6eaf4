"""
Blueprints package for the squad tournament service
Contains the JSON route blueprints for tournaments and teams
"""

from .tournaments import tournaments_bp
from .teams import teams_bp

__all__ = ['tournaments_bp', 'teams_bp']
