"""Core module - batch traceability domain.

This module contains the batch and history models, the status transition
engine, statistics, audit, observability and the regulator workflows.
It is storage-agnostic: batch sources and text generators live in
/connectors/ and are injected.
"""

__version__ = "1.0.0"
