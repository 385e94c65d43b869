"""Counselor knowledge base loaded from config/content/knowledge.yaml."""

from functools import lru_cache

from tms_companion.config import load_content
from tms_companion.models.conversation import KnowledgeBase


@lru_cache(maxsize=1)
def load_knowledge_base() -> KnowledgeBase:
    return KnowledgeBase.model_validate(load_content("knowledge"))
