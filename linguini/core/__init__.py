"""Core models, errors and the annotation pipeline."""
