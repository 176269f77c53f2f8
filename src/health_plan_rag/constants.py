# src/health_plan_rag/constants.py
"""Constants for plan search configuration.

These defaults can be overridden via PipelineConfig / environment.
"""

# Corrective RAG loop
DEFAULT_MAX_REWRITE_ATTEMPTS = 2  # Rewrites allowed per user turn
DEFAULT_MIN_RELEVANT_DOCS = 3  # Below this the search is considered insufficient
DEFAULT_LOW_SIMILARITY_THRESHOLD = 0.5

# RRF (Reciprocal Rank Fusion) parameters
DEFAULT_RRF_K = 60  # RRF smoothing constant
DEFAULT_RRF_TOP_K = 15  # Max fused documents handed to grading
DEFAULT_BOOST_FACTOR = 0.1  # Extra weight per additional query appearance

# Hierarchical retrieval
DEFAULT_GENERAL_TOP_K = 5
DEFAULT_SPECIFIC_TOP_K = 10
DEFAULT_GENERAL_WEIGHT = 0.3
DEFAULT_SPECIFIC_WEIGHT = 0.7
DEFAULT_OPERATOR_BOOST = 1.2
DEFAULT_SEARCH_OVERFETCH = 3  # Backend is asked for top_k * overfetch before type filtering

GENERAL_DOCUMENT_TYPES = ("general",)
SPECIFIC_DOCUMENT_TYPES = ("operator", "product")

# Grading
DEFAULT_GRADING_BATCH_SIZE = 5

# Timeouts (seconds) and fan-out
DEFAULT_LLM_TIMEOUT_S = 10.0
DEFAULT_GRADING_TIMEOUT_S = 15.0
DEFAULT_SEARCH_TIMEOUT_S = 10.0
DEFAULT_MAX_CONCURRENCY = 5

# Models
DEFAULT_MODEL_NAME = "gpt-4.1-mini"
DEFAULT_EMBEDDING_MODEL = "openai:text-embedding-3-small"
