# src/health_plan_rag/model.py

import logging
from typing import Optional

from langchain.chat_models import init_chat_model
from langchain.embeddings import init_embeddings

from health_plan_rag.config import PipelineConfig

logger = logging.getLogger(__name__)


def get_default_model(config: Optional[PipelineConfig] = None):
    config = config or PipelineConfig()
    model = init_chat_model(
        model=config.model_name,
        temperature=0.1,
        max_tokens=2000,
        timeout=config.grading_timeout_s,
        max_retries=0,
    )
    return model


def get_default_embeddings(config: Optional[PipelineConfig] = None):
    config = config or PipelineConfig()
    logger.debug(f"Loading embeddings model {config.embedding_model}")
    return init_embeddings(config.embedding_model)
