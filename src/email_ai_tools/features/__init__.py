"""
Feature entry points.

Each feature composes a prompt for one task and reconciles the answer:
- summary.py: Sentiment, summary, events, actions, risk assessment
- risk.py: Risk score and assessment
- embeddings.py: Message chunking and chunk embeddings
- query.py: Context question answering and question interpretation
- models_list.py: Available models
"""

from .embeddings import Embedder, generate_embeddings, get_chunk_embeddings
from .models_list import list_models, model_display_name
from .query import embeddings_query, question_query
from .risk import risk_analysis
from .summary import generate_summary

__all__ = [
    "generate_summary",
    "risk_analysis",
    "Embedder",
    "generate_embeddings",
    "get_chunk_embeddings",
    "embeddings_query",
    "question_query",
    "list_models",
    "model_display_name",
]
