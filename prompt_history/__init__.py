"""Prompt History - движок истории версий и снимков документов"""

__version__ = "1.0.0"
