# src/insight_flow/orchestration/__init__.py
"""
Orquestração da análise de issues sobre o engine de pipelines.

Componentes:
    - model    → protocolos `LanguageModel` e `SearchTool`
    - schemas  → modelos pydantic de input/saída
    - personas → papéis da análise (configuráveis)
    - memory   → context store em memória (numpy)
    - research → sub-pipeline de pesquisa por persona
    - analysis → pipelines de análise de issue e de épico
"""

from .analysis import analyze_issue, build_epic_analysis_pipeline, build_issue_analysis_pipeline
from .memory import ContextStore, HashingEmbedder, split_text
from .model import LanguageModel, SearchTool
from .personas import DEFAULT_PERSONAS, load_personas
from .research import build_research_pipeline, researcher

__all__ = [
    "analyze_issue",
    "build_epic_analysis_pipeline",
    "build_issue_analysis_pipeline",
    "ContextStore",
    "HashingEmbedder",
    "split_text",
    "LanguageModel",
    "SearchTool",
    "DEFAULT_PERSONAS",
    "load_personas",
    "build_research_pipeline",
    "researcher",
]
