# src/insight_flow/core/traceability/__init__.py
"""
Pacote de rastreabilidade do Insight Flow — RunTrace v1.

API pública exposta:
    - RunTrace      → estrutura canônica do trace de uma invocação
    - create_trace  → criação explícita do trace
    - add_event     → registro explícito de eventos no Event Log
    - step_started  → marca início (ou reentrada) de um Step
    - step_finished → registra conclusão (e salto, quando houver)
    - step_failed   → registra falha de um Step
    - save_trace    → persistência em JSON
    - load_trace    → reconstrução a partir de JSON

O trace é opcional: passe-o em `CompiledPipeline.invoke(..., trace=...)`.
"""

from .trace import (
    RunTrace,
    add_event,
    create_trace,
    load_trace,
    save_trace,
    step_failed,
    step_finished,
    step_started,
)

__all__ = [
    "RunTrace",
    "create_trace",
    "add_event",
    "step_started",
    "step_finished",
    "step_failed",
    "save_trace",
    "load_trace",
]
