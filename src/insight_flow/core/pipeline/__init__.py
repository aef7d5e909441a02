# src/insight_flow/core/pipeline/__init__.py
"""
# Pipeline Core — Insight Flow

Este pacote define a **definição** de pipelines: o Builder imutável,
os tipos de retorno de Steps e as fábricas de Steps de controle de fluxo.

## Componentes

- **types**
  - `Continue` / `Jump`: diretivas de controle retornadas por Steps
  - `StepKind`: classificação semântica de Steps
  - `StepDescriptor`: par imutável (label opcional, função de execução)

- **schema**
  - `InputSchema`: validação do input inicial via pydantic

- **steps**
  - fábricas de `then`, `parallel`, `branch`, `do_while`, `do_until`,
    `goto_if`, `goto_step` e `for_each`

- **builder**
  - `Pipeline` / `pipeline()`: acumulação de Steps e labels

## Invariantes

- Labels são únicos por pipeline
- Nenhum Step executa durante a construção
"""

from .builder import Pipeline, pipeline
from .schema import InputSchema
from .types import Continue, Jump, StepDescriptor, StepKind, StepOutcome

__all__ = [
    "Pipeline",
    "pipeline",
    "InputSchema",
    "Continue",
    "Jump",
    "StepDescriptor",
    "StepKind",
    "StepOutcome",
]
