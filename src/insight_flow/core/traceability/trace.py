"""
RunTrace v1 — rastreabilidade de invocações de pipelines no Insight Flow.

Este módulo define a estrutura e as operações canônicas do RunTrace,
o registro de observabilidade de uma invocação de `CompiledPipeline`.

O RunTrace consolida, de forma determinística e auditável:
    - metadados da execução (run)
    - hash do input validado
    - estado incremental dos Steps (status, visitas, duração)
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real de execução
    - O RunTrace é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico
    - Steps podem ser visitados mais de uma vez (loops e saltos);
      `visits` conta as entradas e `duration_ms` reflete a última
    - Steps de sub-pipelines aninhados usam o caminho `pai/filho`

Invariantes:
    - `events` é sempre uma lista ordenada
    - `steps` é sempre um dicionário indexado pelo nome do Step
    - O trace nunca altera o resultado de uma invocação

Limites explícitos:
    - Não executa pipeline
    - Não decide políticas de execução
    - Não persiste automaticamente
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from insight_flow.core.config.hashing import compute_hash


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza um timestamp para timezone-aware em UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _jsonable(value: Any) -> Any:
    dump = getattr(value, "model_dump", None)
    if callable(dump):
        return dump(mode="json")
    return value


@dataclass
class RunTrace:
    """
    RunTrace v1 — registro de uma invocação de pipeline.

    Campos principais:
        - run: metadados da execução (run_id, started_at, engine_version)
        - inputs: hash do input validado
        - steps: estado incremental de cada Step
        - events: Event Log ordenado

    Um RunTrace pode ser compartilhado por várias invocações apenas se o
    chamador aceitar a mistura de eventos; o uso canônico é um trace por
    invocação.
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any] = field(default_factory=dict)
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def run_id(self) -> str:
        return self.run["run_id"]

    def events_of(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("event_type") == event_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "steps": {k: dict(v) for k, v in self.steps.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunTrace":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            steps={k: dict(v) for k, v in (data.get("steps", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_trace(
    *,
    run_id: Optional[str] = None,
    started_at: Optional[datetime] = None,
    engine_version: Optional[str] = None,
) -> RunTrace:
    """
    Cria o RunTrace inicial de uma invocação.

    ⚠️ Importante: esta função **não emite eventos implicitamente**.
    O Event Log inicia vazio e é preenchido pelo Executor.

    Args:
        run_id (Optional[str]): Identificador da invocação (uuid4 quando ausente).
        started_at (Optional[datetime]): Timestamp de início (agora, em UTC, quando ausente).
        engine_version (Optional[str]): Versão do engine (versão do pacote quando ausente).

    Returns:
        RunTrace: Instância inicializada, com `steps` e `events` vazios.
    """
    if engine_version is None:
        from insight_flow import __version__ as engine_version

    return RunTrace(
        run={
            "run_id": run_id or uuid4().hex,
            "started_at": _iso(started_at or _now()),
            "engine_version": engine_version,
        },
    )


def add_event(
    trace: RunTrace,
    *,
    event_type: str,
    ts: Optional[datetime] = None,
    step_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    A ordem do log reflete estritamente a ordem de chamada; eventos não
    são reordenados nem deduplicados.
    """
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts or _now())}
    if step_id is not None:
        ev["step_id"] = step_id
    if payload is not None:
        ev["payload"] = payload
    trace.events.append(ev)


def record_input(trace: RunTrace, value: Any) -> None:
    """Registra o hash canônico do input validado."""
    trace.inputs["input_hash"] = compute_hash(_jsonable(value))


def run_started(trace: RunTrace, *, scope: str = "", ts: Optional[datetime] = None) -> None:
    add_event(trace, event_type="run_started", ts=ts, payload={"scope": scope})


def run_finished(trace: RunTrace, *, scope: str = "", duration_ms: int, ts: Optional[datetime] = None) -> None:
    add_event(
        trace,
        event_type="run_finished",
        ts=ts,
        payload={"scope": scope, "duration_ms": int(duration_ms)},
    )


def run_failed(trace: RunTrace, *, scope: str = "", error: Dict[str, Any], ts: Optional[datetime] = None) -> None:
    add_event(trace, event_type="run_failed", ts=ts, payload={"scope": scope, "error": error})


def step_started(
    trace: RunTrace,
    *,
    step_id: str,
    kind: str,
    ts: Optional[datetime] = None,
) -> None:
    """
    Registra o início (ou reentrada) de um Step.

    Invariantes:
        - O Step passa a existir em `steps` após a chamada
        - O status do Step é definido como `"running"`
        - `visits` é incrementado a cada entrada
    """
    ts = ts or _now()
    s = trace.steps.setdefault(step_id, {"step_id": step_id, "visits": 0})
    s.update(
        {
            "kind": kind,
            "status": "running",
            "started_at": _iso(ts),
            "visits": int(s.get("visits", 0)) + 1,
        }
    )
    add_event(trace, event_type="step_started", ts=ts, step_id=step_id, payload={"kind": kind})


def step_finished(
    trace: RunTrace,
    *,
    step_id: str,
    duration_ms: float,
    jump_to: Optional[int] = None,
    ts: Optional[datetime] = None,
) -> None:
    """
    Registra a conclusão de um Step.

    Quando o Step retornou um salto, um evento `jump` é registrado logo
    após `step_finished`, com o índice de destino.
    """
    ts = ts or _now()
    s = trace.steps.setdefault(step_id, {"step_id": step_id, "visits": 0})
    s.update(
        {
            "status": "success",
            "finished_at": _iso(ts),
            "duration_ms": max(0, int(duration_ms)),
        }
    )
    add_event(
        trace,
        event_type="step_finished",
        ts=ts,
        step_id=step_id,
        payload={"status": "success", "duration_ms": s["duration_ms"]},
    )
    if jump_to is not None:
        add_event(trace, event_type="jump", ts=ts, step_id=step_id, payload={"jump_to": int(jump_to)})


def step_failed(
    trace: RunTrace,
    *,
    step_id: str,
    error: Dict[str, Any],
    duration_ms: float = 0,
    ts: Optional[datetime] = None,
) -> None:
    """Registra a falha de um Step (status `"failed"` + payload de erro)."""
    ts = ts or _now()
    s = trace.steps.setdefault(step_id, {"step_id": step_id, "visits": 0})
    s.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "duration_ms": max(0, int(duration_ms)),
            "error": error,
        }
    )
    add_event(trace, event_type="step_failed", ts=ts, step_id=step_id, payload={"error": error})


def save_trace(trace: RunTrace, path: Path) -> None:
    """Persiste o RunTrace em JSON (chaves ordenadas, indentado)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(trace.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_trace(path: Path) -> RunTrace:
    """Carrega um RunTrace persistido por `save_trace`."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return RunTrace.from_dict(data)
