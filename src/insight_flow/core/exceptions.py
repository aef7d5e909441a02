"""
Insight Flow — Canonical Exceptions (v1)

Este módulo define as exceções tipadas do engine de pipelines do Insight Flow.

Objetivo:
- Permitir que o Builder/Executor levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload (ver `core.errors`)
- Evitar ValueError/RuntimeError genéricos nos guardrails do engine

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Falhas de Steps de usuário são encapsuladas em `StepExecutionError`,
  preservando a exceção original em `__cause__`.
- Exceções do próprio engine levantadas dentro de Steps (ex.: branch sem
  correspondência em um sub-pipeline) propagam sem novo encapsulamento.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(eq=False)
class PipelineError(Exception):
    """Base class para exceções do engine.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Definição do pipeline (build/compile)
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class PipelineDefinitionError(PipelineError):
    """Definição de pipeline estruturalmente inválida."""


@dataclass(eq=False)
class DuplicateLabelError(PipelineDefinitionError):
    """Um label já registrado foi reutilizado em outro Step."""


@dataclass(eq=False)
class EngineConfigurationError(PipelineDefinitionError):
    """Configuração inválida ou inconsistente para o engine."""


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class InputValidationError(PipelineError):
    """Input inicial rejeitado pelo schema antes de qualquer Step executar."""


@dataclass(eq=False)
class StepExecutionError(PipelineError):
    """Um Step levantou exceção; a run é abortada imediatamente."""

    @property
    def step(self) -> Optional[str]:
        return self.details.get("step")


@dataclass(eq=False)
class BranchExhaustionError(PipelineError):
    """Nenhum predicado de um Step `branch` retornou verdadeiro."""


@dataclass(eq=False)
class UnresolvedLabelError(PipelineError):
    """Um salto referencia um label inexistente."""


@dataclass(eq=False)
class InvalidJumpError(PipelineError):
    """Um `Jump` aponta para um índice fora de `[0, step_count]`."""
