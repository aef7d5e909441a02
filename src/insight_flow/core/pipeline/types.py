"""
Tipos canônicos do pipeline do Insight Flow.

Este módulo define as estruturas e enums fundamentais que padronizam
a comunicação entre Steps, Builder e Executor.

Os tipos aqui definidos representam:
    - a diretiva de controle retornada por um Step (`Continue` | `Jump`)
    - a classificação semântica de Steps
    - o descritor imutável de um Step registrado no pipeline

Componentes principais:
    - Continue       → avança sequencialmente com um novo valor corrente
    - Jump           → posiciona o program counter em um índice explícito
    - StepKind       → enum de classificação dos Steps (then, parallel, ...)
    - StepDescriptor → par imutável (label opcional, função de execução)

Princípios fundamentais:
    - O retorno de todo Step é uma união explícita, nunca inferida por formato
    - Descritores são imutáveis após criados
    - Nenhuma lógica de execução vive neste módulo

Invariantes:
    - Enums possuem valores textuais canônicos
    - `Jump.index` é sempre um inteiro
    - Um StepDescriptor nunca é alterado após o registro

Limites explícitos:
    - Não executa Steps
    - Não resolve labels
    - Não decide políticas de execução

Este módulo existe para garantir consistência e despacho exaustivo
no interpretador do pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Tuple, Union

if TYPE_CHECKING:
    from insight_flow.core.engine.executor import RunState


@dataclass(frozen=True)
class Continue:
    """Avança para o próximo Step com `value` como novo valor corrente."""

    value: Any


@dataclass(frozen=True)
class Jump:
    """Diretiva de salto: `pc = index` e valor corrente = `value`."""

    index: int
    value: Any


StepOutcome = Union[Continue, Jump]

# (valor corrente, contexto inicial) -> valor | Continue | Jump, síncrono ou assíncrono
StepFn = Callable[[Any, Any], Any]

# Forma interna executada pelo interpretador
StepRunner = Callable[[Any, Any, "RunState"], Awaitable[StepOutcome]]


class StepKind(str, Enum):
    """
    Tipos semânticos de Steps no pipeline.

    O valor é puramente informativo: aparece no RunTrace e em mensagens
    de erro. O Executor não altera seu comportamento com base no `kind`;
    toda semântica está encapsulada na função do descritor.
    """
    THEN = "then"
    PARALLEL = "parallel"
    BRANCH = "branch"
    DO_WHILE = "do_while"
    DO_UNTIL = "do_until"
    GOTO_IF = "goto_if"
    GOTO_STEP = "goto_step"
    FOR_EACH = "for_each"


@dataclass(frozen=True)
class StepDescriptor:
    """
    Descritor imutável de um Step registrado no pipeline.

    Campos:
        - kind: classificação semântica do Step
        - run: função interna `(value, context, run_state) -> StepOutcome`;
          para `branch` é None até a compilação
        - label: nome opcional, usado como alvo de salto e no trace
        - branches: pares (predicado, sub-pipeline) de um `branch`, ainda
          não compilados
    """

    kind: StepKind
    run: Optional[StepRunner]
    label: Optional[str] = None
    branches: Tuple[Tuple[StepFn, Any], ...] = ()

    def display_name(self, index: int) -> str:
        return self.label or f"Step {index}"
