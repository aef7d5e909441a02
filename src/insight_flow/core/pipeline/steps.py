"""
Tipos de Step de controle de fluxo.

Cada operação de composição do Builder (`then`, `parallel`, `branch`,
`do_while`, `do_until`, `goto_if`, `goto_step`, `for_each`) é açúcar
sintático que compila para **um único** StepDescriptor. Este módulo
contém as fábricas dessas funções de execução.

Contrato das funções produzidas:
    async (valor corrente, contexto inicial, RunState) -> Continue | Jump

Decisões arquiteturais:
    - Funções de usuário podem ser síncronas ou assíncronas
    - Fan-out (`parallel`, `for_each`) usa concorrência estruturada:
      a falha de um ramo cancela e aguarda os ramos irmãos ainda em
      execução antes de propagar o erro
    - `goto_if` mantém um contador de saltos por Step durante toda a run
    - Saltos só são válidos como retorno de Steps de nível superior;
      funções aninhadas (condições, ações, ramos) retornam valores

Limites explícitos:
    - Não avança o program counter (responsabilidade do Executor)
    - Não valida input inicial
    - Não registra eventos de trace (apenas propaga o escopo para
      pipelines compilados usados como Step)
"""

from __future__ import annotations

import asyncio
import inspect
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Awaitable, Iterable, List, Mapping, Optional, Sequence, Tuple

from insight_flow.core.exceptions import BranchExhaustionError, InvalidJumpError

from .types import Continue, Jump, StepFn, StepOutcome, StepRunner

if TYPE_CHECKING:
    from insight_flow.core.engine.executor import CompiledPipeline, RunState
    from insight_flow.core.traceability.trace import RunTrace


# (trace, step_id) do Step em execução; pipelines compilados usados como
# Step leem este valor para registrar no trace da run externa
ENCLOSING_STEP: "ContextVar[Tuple[Optional[RunTrace], str]]" = ContextVar(
    "insight_flow_enclosing_step", default=(None, "")
)


async def call_step(fn: StepFn, value: Any, context: Any) -> Any:
    result = fn(value, context)
    if inspect.isawaitable(result):
        result = await result
    return result


async def call_value(fn: StepFn, value: Any, context: Any) -> Any:
    """Executa uma função aninhada e exige um valor simples como retorno."""
    result = await call_step(fn, value, context)
    if isinstance(result, Continue):
        return result.value
    if isinstance(result, Jump):
        raise InvalidJumpError(
            message="Jump directives are only allowed as the result of a top-level step",
            details={"index": result.index},
        )
    return result


async def call_scoped(name: str, fn: StepFn, value: Any, context: Any) -> Any:
    """`call_value` com o escopo de trace estendido por `name` (ramo de fan-out)."""
    trace, scope = ENCLOSING_STEP.get()
    token = ENCLOSING_STEP.set((trace, f"{scope}/{name}" if scope else name))
    try:
        return await call_value(fn, value, context)
    finally:
        ENCLOSING_STEP.reset(token)


async def gather_all(aws: Iterable[Awaitable[Any]]) -> List[Any]:
    """`asyncio.gather` com cancelamento dos irmãos em caso de falha."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


# ---------------------------------------------------------------------------
# Sequencial
# ---------------------------------------------------------------------------

def lift(fn: StepFn) -> StepRunner:
    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        result = await call_step(fn, value, context)
        if isinstance(result, (Continue, Jump)):
            return result
        return Continue(result)

    return run


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------

def parallel_list(branches: Sequence[StepFn]) -> StepRunner:
    branches = tuple(branches)

    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        outputs = await gather_all(call_scoped(str(i), fn, value, context) for i, fn in enumerate(branches))
        return Continue(outputs)

    return run


def parallel_map(branches: Mapping[str, StepFn]) -> StepRunner:
    names = tuple(branches.keys())
    fns = tuple(branches[name] for name in names)

    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        outputs = await gather_all(call_scoped(name, fn, value, context) for name, fn in zip(names, fns))
        return Continue(dict(zip(names, outputs)))

    return run


def for_each(item_fn: StepFn) -> StepRunner:
    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
            raise TypeError(
                f"for_each requires the current value to be a sequence, got {type(value).__name__}"
            )
        outputs = await gather_all(call_scoped(str(i), item_fn, item, context) for i, item in enumerate(value))
        return Continue(outputs)

    return run


# ---------------------------------------------------------------------------
# Branch
# ---------------------------------------------------------------------------

def branch(branches: Sequence[Tuple[StepFn, "CompiledPipeline"]]) -> StepRunner:
    branches = tuple(branches)

    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        for predicate, sub_pipeline in branches:
            if await call_value(predicate, value, context):
                result = await sub_pipeline.execute(
                    value,
                    trace=state.trace,
                    scope=state.path(state.current_step),
                )
                return Continue(result)
        raise BranchExhaustionError(
            message="No branch matched",
            details={"step": state.path(state.current_step), "branches": len(branches)},
            hint="Declare um predicado final que sempre retorne True para cobrir os casos restantes",
        )

    return run


# ---------------------------------------------------------------------------
# Loops
# ---------------------------------------------------------------------------

def do_while(cond: StepFn, action: StepFn) -> StepRunner:
    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        current = value
        while await call_value(cond, current, context):
            current = await call_value(action, current, context)
        return Continue(current)

    return run


def do_until(cond: StepFn, action: StepFn) -> StepRunner:
    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        current = value
        while True:
            current = await call_value(action, current, context)
            if await call_value(cond, current, context):
                return Continue(current)

    return run


# ---------------------------------------------------------------------------
# Saltos
# ---------------------------------------------------------------------------

def goto_if(cond: StepFn, target: str, max_retries: int) -> StepRunner:
    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        if not await call_value(cond, value, context):
            return Continue(value)
        # contador por Step (índice) durante toda a invocação
        taken = state.goto_counts.get(state.pc, 0)
        if taken >= max_retries:
            return Continue(value)
        index = state.resolve(target)
        if index is None:
            return Continue(value)
        state.goto_counts[state.pc] = taken + 1
        return Jump(index, value)

    return run


def goto_step(fn: StepFn) -> StepRunner:
    async def run(value: Any, context: Any, state: "RunState") -> StepOutcome:
        target = await call_value(fn, value, context)
        index = state.resolve(str(target))
        if index is None:
            return Continue(value)
        return Jump(index, value)

    return run
