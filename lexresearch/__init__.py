"""LexResearch legal research engine.

Takes a natural-language research query plus structured constraints and
returns a ranked, deduplicated, cited set of legal documents with derived
precedents and an optional narrative analysis.

Main components:
- orchestrators/research_orchestrator.py: the ``research()`` entry point
- orchestrators/search_orchestrator.py: concurrent per-jurisdiction search
- tools/: one module per pipeline stage
- models.py: request, document and result models
"""

__version__ = "0.1.0"
