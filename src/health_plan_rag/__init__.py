"""Agentic retrieval pipeline for Brazilian health-plan recommendations, built on LangGraph.

The pipeline is split into:
- rag: components (query planning, hierarchical retrieval, RRF fusion, grading, rewriting, budget filtering)
- search: the graph that wires the components into a corrective retrieval loop
"""

__version__ = "0.1.0"
