"""
Category Classifier Package

Suggests a spending category from a transaction description using a
small recurrent network.
"""

from budget_tracker.classifier.network import (
    ClassifierError,
    InsufficientDataError,
    ModelNotTrainedError,
    TrainingSummary,
    TransactionClassifier,
)
from budget_tracker.classifier.service import CategoryService
from budget_tracker.classifier.text import (
    PAD_INDEX,
    Vocabulary,
    pad_sequences,
    tokenize,
)

__all__ = [
    # Text
    "PAD_INDEX",
    "Vocabulary",
    "pad_sequences",
    "tokenize",
    # Network
    "ClassifierError",
    "InsufficientDataError",
    "ModelNotTrainedError",
    "TrainingSummary",
    "TransactionClassifier",
    # Service
    "CategoryService",
]
