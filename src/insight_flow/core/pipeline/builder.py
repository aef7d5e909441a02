"""
Builder (Step Registry) de pipelines do Insight Flow.

Este módulo define o `Pipeline`, responsável por acumular a sequência
ordenada de StepDescriptors e o mapa label → índice que compõem a
definição de um pipeline.

Todas as operações são acumulação pura de metadados: nada executa até
que o resultado de `compile()` seja invocado.

Responsabilidades do módulo:
    - Registrar Steps sequenciais e de controle de fluxo
    - Registrar labels no momento em que o Step rotulado é adicionado
    - Rejeitar labels duplicados no momento do registro
    - Congelar a definição em um `CompiledPipeline`

Decisões arquiteturais:
    - O `Pipeline` é imutável: cada chamada retorna uma NOVA instância,
      portanto um pipeline já compilado nunca é alterado por chamadas
      posteriores do builder
    - Labels podem ser alvo de saltos declarados antes ou depois deles
    - Sub-pipelines de `branch` são guardados como definição e compilados
      junto com o pipeline externo (mesma configuração)

Invariantes:
    - Cada label aponta para exatamente um índice
    - A tupla de Steps reflete exatamente a ordem de registro
    - Nenhum Step é executado durante a construção

Limites explícitos:
    - Não executa Steps
    - Não valida input
    - Não registra eventos de trace

Este módulo existe para garantir uma definição de pipeline previsível,
imutável e estruturalmente válida antes da execução.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from insight_flow.core.exceptions import DuplicateLabelError, PipelineDefinitionError

from . import steps as kinds
from .schema import InputSchema, as_schema
from .types import StepDescriptor, StepFn, StepKind, StepRunner


@dataclass(frozen=True)
class Pipeline:
    """
    Definição imutável de um pipeline (Step Registry).

    Uso típico:

        compiled = (
            pipeline(IssueInput)
            .then("topics", extract_topics)
            .parallel({"business": business_node, "qa": qa_node})
            .compile()
        )
        result = await compiled.invoke({"title": "Add login"})
    """

    schema: Optional[InputSchema] = None
    steps: Tuple[StepDescriptor, ...] = ()
    labels: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    # alvos estáticos de goto_if, verificados em compile()
    goto_targets: Tuple[str, ...] = ()

    # ------------------------------------------------------------------
    # Registro
    # ------------------------------------------------------------------
    def _append(
        self,
        kind: StepKind,
        run: Optional[StepRunner],
        label: Optional[str],
        target: Optional[str] = None,
        branches: Tuple[Tuple[StepFn, Any], ...] = (),
    ) -> "Pipeline":
        labels: Dict[str, int] = dict(self.labels)
        if label is not None:
            if not isinstance(label, str) or not label.strip():
                raise PipelineDefinitionError(
                    message="step label must be a non-empty string",
                    details={"label": label},
                )
            if label in labels:
                raise DuplicateLabelError(
                    message=f"Duplicate step label: {label}",
                    details={"label": label, "index": labels[label]},
                    hint="Use um label único por Step",
                )
            labels[label] = len(self.steps)
        return replace(
            self,
            steps=self.steps + (StepDescriptor(kind=kind, run=run, label=label, branches=branches),),
            labels=MappingProxyType(labels),
            goto_targets=self.goto_targets + ((target,) if target is not None else ()),
        )

    def then(
        self,
        label_or_fn: Union[str, StepFn],
        fn: Optional[StepFn] = None,
        *,
        label: Optional[str] = None,
    ) -> "Pipeline":
        """`then(fn)`, `then("label", fn)` ou `then(fn, label="label")`."""
        if isinstance(label_or_fn, str):
            if fn is None:
                raise PipelineDefinitionError(
                    message=f"then('{label_or_fn}') requires a step function",
                    details={"label": label_or_fn},
                )
            if label is not None:
                raise PipelineDefinitionError(
                    message="then() got a label both positionally and as keyword",
                    details={"positional": label_or_fn, "keyword": label},
                )
            return self._append(StepKind.THEN, kinds.lift(fn), label_or_fn)
        if fn is not None:
            raise PipelineDefinitionError(
                message="then(fn, fn) is not supported; pass the label first",
                details={"received": type(fn).__name__},
            )
        return self._append(StepKind.THEN, kinds.lift(label_or_fn), label)

    def parallel(
        self,
        steps: Union[Sequence[StepFn], Mapping[str, StepFn]],
        *,
        label: Optional[str] = None,
    ) -> "Pipeline":
        if isinstance(steps, Mapping):
            return self._append(StepKind.PARALLEL, kinds.parallel_map(steps), label)
        return self._append(StepKind.PARALLEL, kinds.parallel_list(steps), label)

    def branch(
        self,
        branches: Sequence[Tuple[StepFn, Any]],
        *,
        label: Optional[str] = None,
    ) -> "Pipeline":
        checked = tuple((predicate, _check_sub_pipeline(sub)) for predicate, sub in branches)
        return self._append(StepKind.BRANCH, None, label, branches=checked)

    def do_while(self, cond: StepFn, action: StepFn, *, label: Optional[str] = None) -> "Pipeline":
        return self._append(StepKind.DO_WHILE, kinds.do_while(cond, action), label)

    def do_until(self, cond: StepFn, action: StepFn, *, label: Optional[str] = None) -> "Pipeline":
        return self._append(StepKind.DO_UNTIL, kinds.do_until(cond, action), label)

    def goto_if(
        self,
        cond: StepFn,
        target: str,
        max_retries: int,
        *,
        label: Optional[str] = None,
    ) -> "Pipeline":
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise PipelineDefinitionError(
                message="goto_if max_retries must be a non-negative integer",
                details={"target": target, "max_retries": max_retries},
            )
        return self._append(StepKind.GOTO_IF, kinds.goto_if(cond, target, max_retries), label, target)

    def goto_step(self, fn: StepFn, *, label: Optional[str] = None) -> "Pipeline":
        return self._append(StepKind.GOTO_STEP, kinds.goto_step(fn), label)

    def for_each(self, item_fn: StepFn, *, label: Optional[str] = None) -> "Pipeline":
        return self._append(StepKind.FOR_EACH, kinds.for_each(item_fn), label)

    # ------------------------------------------------------------------
    # Compilação
    # ------------------------------------------------------------------
    def compile(self, config: Optional[Dict[str, Any]] = None):
        from insight_flow.core.engine.executor import compile_pipeline

        return compile_pipeline(self, config=config)


def pipeline(schema: Any = None) -> Pipeline:
    """Inicia um pipeline cujo input inicial é validado por `schema`."""
    return Pipeline(schema=as_schema(schema))


def _check_sub_pipeline(sub: Any) -> Any:
    from insight_flow.core.engine.executor import CompiledPipeline

    if isinstance(sub, (Pipeline, CompiledPipeline)):
        return sub
    raise PipelineDefinitionError(
        message="branch sub-pipelines must be Pipeline or CompiledPipeline instances",
        details={"received": type(sub).__name__},
    )
