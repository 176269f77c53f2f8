# tests/conftest.py
import os

# Disable Langfuse before any health_plan_rag module is imported
os.environ["LANGFUSE_ENABLED"] = "0"
