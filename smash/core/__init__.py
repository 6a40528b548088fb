"""Core module for the smash application."""

from .types import FirestoreDocument, OperationResult

__all__ = ["FirestoreDocument", "OperationResult"]
