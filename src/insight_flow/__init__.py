# src/insight_flow/__init__.py
"""
Insight Flow — engine assíncrono de pipelines para análise de issues do Jira.

Este pacote raiz define o namespace público do Insight Flow. O núcleo é
um interpretador de pipelines baseado em program counter: Steps
sequenciais, fan-out paralelo, branches com sub-pipelines, loops e
saltos por label com limite de repetições.

Arquitetura em alto nível:
    - core.config        → carregamento, merge e hashing de configuração
    - core.pipeline      → tipos, schema de input, Steps de controle e Builder
    - core.engine        → CompiledPipeline e laço de interpretação
    - core.traceability  → RunTrace (Event Log) de cada invocação
    - orchestration      → personas, pesquisa, context store e análises
    - tracker            → cliente da REST API do Jira

Uso típico:

    from insight_flow import pipeline

    compiled = pipeline(MyInput).then("enrich", enrich).compile()
    result = compiled.run({"title": "Add login"})

Limites explícitos:
    - Não fornece UI nem servidor HTTP
    - Não implementa adaptadores concretos de LLM
"""

from .core.engine.executor import CompiledPipeline, compile_pipeline
from .core.exceptions import (
    BranchExhaustionError,
    DuplicateLabelError,
    EngineConfigurationError,
    InputValidationError,
    InvalidJumpError,
    PipelineDefinitionError,
    PipelineError,
    StepExecutionError,
    UnresolvedLabelError,
)
from .core.pipeline.builder import Pipeline, pipeline
from .core.pipeline.types import Continue, Jump

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "pipeline",
    "Pipeline",
    "CompiledPipeline",
    "compile_pipeline",
    "Continue",
    "Jump",
    "PipelineError",
    "PipelineDefinitionError",
    "DuplicateLabelError",
    "EngineConfigurationError",
    "InputValidationError",
    "StepExecutionError",
    "BranchExhaustionError",
    "UnresolvedLabelError",
    "InvalidJumpError",
]
