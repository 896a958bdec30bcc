"""Prompt templates for LLM interactions.

Each module contains system/user prompt pairs and builder functions for a
specific document task.

Modules:
    documents: Certificate verification + CV extraction prompts
"""
