# src/insight_flow/core/engine/executor.py
"""
Executor compilado (interpretador) de pipelines do Insight Flow.

Este módulo define o `CompiledPipeline`, produto imutável de
`Pipeline.compile()`, e o laço de interpretação baseado em program
counter que executa seus Steps.

Laço de execução (por invocação):
    1. Validar o input com o schema do pipeline (antes de qualquer Step)
    2. pc = 0; valor corrente = contexto inicial = input validado
    3. Enquanto pc < número de Steps:
        - executar steps[pc] com (valor corrente, contexto inicial)
        - Jump(index, value)  → pc = index, valor corrente = value
        - Continue(value)     → valor corrente = value, pc += 1
    4. Retornar o valor corrente final

Decisões arquiteturais:
    - O despacho sobre `Continue | Jump` é exaustivo; qualquer outro
      retorno de um descritor é erro de configuração do engine
    - Exceções de Steps de usuário abortam a run imediatamente e são
      encapsuladas em `StepExecutionError` (causa original preservada)
    - Exceções do próprio engine (`PipelineError`) propagam inalteradas
    - O trace é opcional e não interfere no resultado
    - Não há retry implícito; o único mecanismo de repetição limitado é `goto_if`

Invariantes:
    - Cada invocação possui seu próprio RunState (pc, contadores, escopo)
    - A lista de Steps e o mapa de labels nunca mudam após a compilação
    - Invocações concorrentes da mesma instância são independentes

Limites explícitos:
    - Não impõe timeout a Steps
    - Não persiste estado entre invocações
    - Não gerencia concorrência de recursos capturados por closures
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from insight_flow.core.config.defaults import resolve_config
from insight_flow.core.errors import exception_to_error
from insight_flow.core.exceptions import (
    EngineConfigurationError,
    InvalidJumpError,
    PipelineError,
    StepExecutionError,
    UnresolvedLabelError,
)
from insight_flow.core.pipeline import steps as kinds
from insight_flow.core.pipeline.builder import Pipeline
from insight_flow.core.pipeline.schema import InputSchema
from insight_flow.core.pipeline.types import Continue, Jump, StepDescriptor, StepKind
from insight_flow.core.traceability import trace as tr
from insight_flow.core.traceability.trace import RunTrace


UNRESOLVED_LABEL_POLICIES = ("error", "ignore")


@dataclass
class RunState:
    """Estado privado de uma invocação (ou de uma execução aninhada)."""

    labels: Mapping[str, int]
    unresolved_label: str = "error"
    trace: Optional[RunTrace] = None
    scope: str = ""
    pc: int = 0
    current_step: str = ""
    # saltos já realizados por cada goto_if (chave = índice do Step)
    goto_counts: Dict[int, int] = field(default_factory=dict)

    def path(self, name: str) -> str:
        return f"{self.scope}/{name}" if self.scope else name

    def resolve(self, label: str) -> Optional[int]:
        index = self.labels.get(label)
        if index is None and self.unresolved_label == "error":
            raise UnresolvedLabelError(
                message=f"Jump target '{label}' is not a label of this pipeline",
                details={"label": label, "step": self.path(self.current_step), "known": sorted(self.labels)},
                hint="Declare o label com then('<label>', fn) ou corrija o alvo do salto",
            )
        return index


@dataclass(frozen=True)
class CompiledPipeline:
    """
    Pipeline compilado: função imutável de input validado para output final.

    Pode ser usado diretamente como Step de outro pipeline
    (`compiled(value, context)` invoca com `value` como input). Nesse caso
    a execução aninhada registra no trace da run externa, com escopo
    `step externo/step interno`.
    """

    steps: Tuple[StepDescriptor, ...]
    labels: Mapping[str, int]
    schema: Optional[InputSchema] = None
    unresolved_label: str = "error"

    @property
    def step_count(self) -> int:
        return len(self.steps)

    def step_names(self) -> Tuple[str, ...]:
        return tuple(s.display_name(i) for i, s in enumerate(self.steps))

    # ------------------------------------------------------------------
    # Entradas públicas
    # ------------------------------------------------------------------
    async def invoke(self, input_value: Any, *, trace: Optional[RunTrace] = None) -> Any:
        return await self.execute(input_value, trace=trace)

    def run(self, input_value: Any, *, trace: Optional[RunTrace] = None) -> Any:
        """Wrapper síncrono de `invoke` (não usar dentro de um event loop)."""
        return asyncio.run(self.invoke(input_value, trace=trace))

    async def __call__(self, value: Any, context: Any = None) -> Any:
        trace, scope = kinds.ENCLOSING_STEP.get()
        if trace is None:
            return await self.invoke(value)
        return await self.execute(value, trace=trace, scope=scope)

    # ------------------------------------------------------------------
    # Interpretador
    # ------------------------------------------------------------------
    async def execute(self, input_value: Any, *, trace: Optional[RunTrace] = None, scope: str = "") -> Any:
        started = time.perf_counter()
        if trace is not None:
            tr.run_started(trace, scope=scope)

        try:
            context = self.schema.validate(input_value) if self.schema is not None else input_value
        except PipelineError as e:
            if trace is not None:
                tr.run_failed(trace, scope=scope, error=exception_to_error(e).to_dict())
            raise

        if trace is not None and not scope:
            tr.record_input(trace, context)

        state = RunState(
            labels=self.labels,
            unresolved_label=self.unresolved_label,
            trace=trace,
            scope=scope,
        )
        value = context

        try:
            while state.pc < len(self.steps):
                value = await self._step(state, value, context)
        except PipelineError as e:
            if trace is not None:
                tr.run_failed(trace, scope=scope, error=exception_to_error(e).to_dict())
            raise

        if trace is not None:
            tr.run_finished(trace, scope=scope, duration_ms=(time.perf_counter() - started) * 1000)
        return value

    async def _step(self, state: RunState, value: Any, context: Any) -> Any:
        """Executa steps[pc], atualiza o pc e retorna o novo valor corrente."""
        pc = state.pc
        step = self.steps[pc]
        name = step.display_name(pc)
        step_id = state.path(name)
        state.current_step = name

        trace = state.trace
        if trace is not None:
            tr.step_started(trace, step_id=step_id, kind=step.kind.value)
        t0 = time.perf_counter()

        token = kinds.ENCLOSING_STEP.set((trace, step_id))
        try:
            outcome = await step.run(value, context, state)
        except PipelineError as e:
            if trace is not None:
                tr.step_failed(
                    trace,
                    step_id=step_id,
                    error=exception_to_error(e).to_dict(),
                    duration_ms=(time.perf_counter() - t0) * 1000,
                )
            raise
        except Exception as e:
            err = StepExecutionError(
                message=f"Step '{step_id}' failed: {e}" if str(e) else f"Step '{step_id}' failed",
                details={
                    "step": step_id,
                    "index": pc,
                    "kind": step.kind.value,
                    "exception_class": e.__class__.__name__,
                },
            )
            if trace is not None:
                tr.step_failed(
                    trace,
                    step_id=step_id,
                    error=exception_to_error(err).to_dict(),
                    duration_ms=(time.perf_counter() - t0) * 1000,
                )
            raise err from e
        finally:
            kinds.ENCLOSING_STEP.reset(token)

        elapsed_ms = (time.perf_counter() - t0) * 1000

        if isinstance(outcome, Jump):
            if isinstance(outcome.index, bool) or not isinstance(outcome.index, int) or not (
                0 <= outcome.index <= len(self.steps)
            ):
                err = InvalidJumpError(
                    message=f"Step '{step_id}' jumped to invalid index {outcome.index!r}",
                    details={"step": step_id, "index": outcome.index, "step_count": len(self.steps)},
                )
                if trace is not None:
                    tr.step_failed(trace, step_id=step_id, error=exception_to_error(err).to_dict(), duration_ms=elapsed_ms)
                raise err
            if trace is not None:
                tr.step_finished(trace, step_id=step_id, duration_ms=elapsed_ms, jump_to=outcome.index)
            state.pc = outcome.index
            return outcome.value

        if isinstance(outcome, Continue):
            if trace is not None:
                tr.step_finished(trace, step_id=step_id, duration_ms=elapsed_ms)
            state.pc = pc + 1
            return outcome.value

        raise EngineConfigurationError(
            message=f"Step '{step_id}' returned {type(outcome).__name__}, expected Continue or Jump",
            details={"step": step_id, "received": type(outcome).__name__},
        )


def compile_pipeline(definition: Pipeline, *, config: Optional[Dict[str, Any]] = None) -> CompiledPipeline:
    """
    Congela uma definição de pipeline em um `CompiledPipeline`.

    Sub-pipelines de `branch` declarados como `Pipeline` são compilados
    aqui com a mesma `config`; `CompiledPipeline`s são usados como estão.

    Validações de compilação:
        - `engine.unresolved_label` deve ser "error" ou "ignore"
        - com a política "error", todo alvo estático de `goto_if` deve
          corresponder a um label declarado (antes ou depois do salto)

    Raises:
        EngineConfigurationError: Se a configuração do engine for inválida.
        UnresolvedLabelError: Se um alvo de `goto_if` não existir.
    """
    engine_cfg = resolve_config(config).get("engine", {}) or {}
    policy = engine_cfg.get("unresolved_label", "error")
    if policy not in UNRESOLVED_LABEL_POLICIES:
        raise EngineConfigurationError(
            message=f"Invalid engine.unresolved_label: {policy!r}",
            details={"received": policy, "allowed": list(UNRESOLVED_LABEL_POLICIES)},
            hint="Use 'error' (padrão) ou 'ignore'",
        )

    labels = dict(definition.labels)
    if policy == "error":
        missing = sorted({t for t in definition.goto_targets if t not in labels})
        if missing:
            raise UnresolvedLabelError(
                message=f"goto_if targets unknown label(s): {', '.join(missing)}",
                details={"labels": missing, "known": sorted(labels)},
                hint="Declare o label com then('<label>', fn) ou corrija o alvo do salto",
            )

    return CompiledPipeline(
        steps=tuple(_compile_step(s, config) for s in definition.steps),
        labels=definition.labels,
        schema=definition.schema,
        unresolved_label=policy,
    )


def _compile_step(step: StepDescriptor, config: Optional[Dict[str, Any]]) -> StepDescriptor:
    if step.kind is not StepKind.BRANCH:
        return step
    compiled = tuple(
        (predicate, sub if isinstance(sub, CompiledPipeline) else compile_pipeline(sub, config=config))
        for predicate, sub in step.branches
    )
    return replace(step, run=kinds.branch(compiled))
