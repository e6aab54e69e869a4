"""
Transaction Filter - card identifier filtering for transaction files

Validates inbound transaction records, keeps only those whose card
identifier (PAN) is in a permitted set, replaces the PAN with its salted
hash and audits filtered and invalid records to per-file CSV logs.
"""

__version__ = "0.1.0"

from .core.pipeline import PipelineResult, ProcessingPipeline
from .core.processor import RecordProcessor

__all__ = ["ProcessingPipeline", "PipelineResult", "RecordProcessor"]
