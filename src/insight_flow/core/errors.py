"""
Insight Flow — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros serializáveis do Insight Flow.
Erros registrados no RunTrace (ver `core.traceability.trace`) devem ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .exceptions import (
    BranchExhaustionError,
    DuplicateLabelError,
    EngineConfigurationError,
    InputValidationError,
    InvalidJumpError,
    PipelineError,
    StepExecutionError,
    UnresolvedLabelError,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do Insight Flow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao autor do pipeline (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Definição
DUPLICATE_LABEL = "DUPLICATE_LABEL"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"

# Execução
INPUT_VALIDATION_ERROR = "INPUT_VALIDATION_ERROR"
STEP_EXECUTION_ERROR = "STEP_EXECUTION_ERROR"
BRANCH_EXHAUSTED = "BRANCH_EXHAUSTED"
UNRESOLVED_LABEL = "UNRESOLVED_LABEL"
INVALID_JUMP = "INVALID_JUMP"
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"

_CODES = (
    (DuplicateLabelError, DUPLICATE_LABEL),
    (EngineConfigurationError, ENGINE_CONFIGURATION_ERROR),
    (InputValidationError, INPUT_VALIDATION_ERROR),
    (StepExecutionError, STEP_EXECUTION_ERROR),
    (BranchExhaustionError, BRANCH_EXHAUSTED),
    (UnresolvedLabelError, UNRESOLVED_LABEL),
    (InvalidJumpError, INVALID_JUMP),
)


def error_code(exc: BaseException) -> str:
    for cls, code in _CODES:
        if isinstance(exc, cls):
            return code
    return ENGINE_EXECUTION_ERROR


def exception_to_error(exc: BaseException) -> ErrorPayload:
    """Converte exceções em ErrorPayload (serializável, acionável).

    Regras:
    - PipelineError: já vem com message/details/hint.
    - Outras exceções: encapsular como ENGINE_EXECUTION_ERROR sem expor stack trace.
    """
    if isinstance(exc, PipelineError):
        return ErrorPayload(
            type=error_code(exc),
            message=exc.message or "Erro de execução",
            details=dict(exc.details or {}),
            hint=exc.hint,
        )

    return ErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique o Step que falhou; nenhum retry é aplicado automaticamente",
    )
