"""
Transformers between captured flows, the Model and flow source.
"""

from .flow_to_model import flows_to_model, resolve_inferred_type
from .model_to_flow import model_to_flow

__all__ = ["flows_to_model", "model_to_flow", "resolve_inferred_type"]
