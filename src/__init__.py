"""
Rating Timeline - Core Package

This package contains the core modules for:
- Rating analytics: smoothing, trend, forecast and milestones (src.timeline)
- Data ingestion from Chess.com (src.ingestion)
- Shared configuration and utilities
"""

from src.config import *
