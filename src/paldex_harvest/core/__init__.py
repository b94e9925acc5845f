# ABOUTME: Orchestration layer of the harvest engine
# ABOUTME: Pipeline Stage 2: parsed list pages + detail pages → merged DetailRecords

"""
Core Layer: List–detail merging and request orchestration

This layer handles:
- Cache-first category list access
- Detail record merging with list/detail fallbacks
- Bounded concurrency for batches of detail pages

Data Flow: extraction/ records → Merge → DetailRecord
"""

# Import the service on demand
# Use: from paldex_harvest.core.service import HarvestService

__all__: list[str] = []
