# tests/core/engine/test_executor_sequencing.py
"""
Testes do laço de interpretação do `CompiledPipeline`.

Este módulo valida o comportamento sequencial do executor:
- composição de `then` (associatividade)
- diretivas explícitas `Continue` / `Jump`
- validação do input antes de qualquer Step
- Steps síncronos e assíncronos
- uso de um pipeline compilado como Step de outro pipeline
- independência entre invocações concorrentes da mesma instância

Invariantes:
    - O contexto inicial é o input validado e é o mesmo para todos os Steps
    - Um Jump para `step_count` encerra a run normalmente
    - Um Jump fora de `[0, step_count]` é `InvalidJumpError`
"""

import asyncio
from typing import List, Optional

import pytest
from pydantic import BaseModel

try:
    from insight_flow import CompiledPipeline, Continue, Jump, pipeline
    from insight_flow.core.exceptions import InputValidationError, InvalidJumpError
except Exception as e:  # noqa: BLE001
    pipeline = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing executor. Implement:\n"
            "- src/insight_flow/core/engine/executor.py (CompiledPipeline, compile_pipeline)\n"
            f"Import error: {_IMPORT_ERR}"
        )


class IssueInput(BaseModel):
    title: str
    labels: Optional[List[str]] = None


def f(x, ctx):
    return x * 2


async def g(x, ctx):
    return x + 3


def h(x, ctx):
    return x - 1


def test_then_is_associative(run):
    """
    `then(f).then(g).then(h)` equivale a agrupar `f, g` em um sub-pipeline
    compilado usado como Step, seguido de `h`.
    """
    _require_imports()
    flat = pipeline().then(f).then(g).then(h).compile()
    grouped = pipeline().then(pipeline().then(f).then(g).compile()).then(h).compile()

    for x in (0, 1, 7):
        expected = h(asyncio.run(g(f(x, None), None)), None)
        assert run(flat.invoke(x)) == expected
        assert run(grouped.invoke(x)) == expected


def test_empty_pipeline_returns_validated_input(run):
    _require_imports()
    compiled = pipeline(IssueInput).compile()
    out = run(compiled.invoke({"title": "Add login"}))
    assert isinstance(out, IssueInput)
    assert out.title == "Add login"


def test_continue_and_plain_values_are_equivalent(run):
    _require_imports()
    compiled = pipeline().then(lambda v, c: Continue(v + 1)).then(lambda v, c: v + 1).compile()
    assert run(compiled.invoke(0)) == 2


def test_jump_moves_program_counter(run):
    _require_imports()
    visited = []

    def record(name):
        def step(v, c):
            visited.append(name)
            return v + [name]

        return step

    compiled = (
        pipeline()
        .then(lambda v, c: Jump(2, v + ["jump"]))
        .then(record("skipped"))
        .then(record("landed"))
        .compile()
    )
    assert run(compiled.invoke([])) == ["jump", "landed"]
    assert visited == ["landed"]


def test_jump_to_step_count_finishes_run(run):
    _require_imports()
    compiled = (
        pipeline()
        .then(lambda v, c: Jump(2, "done"))
        .then(lambda v, c: pytest.fail("must not run"))
        .compile()
    )
    assert run(compiled.invoke(None)) == "done"


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_jump_out_of_range_is_invalid(run, index):
    _require_imports()
    compiled = pipeline().then(lambda v, c: Jump(index, v)).then(lambda v, c: v).compile()
    with pytest.raises(InvalidJumpError) as exc:
        run(compiled.invoke(1))
    assert exc.value.details["index"] == index
    assert exc.value.details["step_count"] == 2


def test_jump_from_nested_function_is_invalid(run):
    _require_imports()
    compiled = pipeline().do_until(lambda v, c: True, lambda v, c: Jump(0, v)).compile()
    with pytest.raises(InvalidJumpError):
        run(compiled.invoke(1))


def test_add_login_scenario(run):
    """
    Input `{title: "Add login"}` → extract_topics → parallel {topics, business, qa}.

    Ambos os nós paralelos observam o mesmo contexto inicial (o input validado).
    """
    _require_imports()
    seen_contexts = []

    def extract_topics(issue: IssueInput, ctx):
        return {"topics": [w.lower() for w in issue.title.split()]}

    async def biz_node(value, ctx):
        seen_contexts.append(ctx)
        await asyncio.sleep(0)
        return f"business view of {ctx.title}: {', '.join(value['topics'])}"

    def qa_node(value, ctx):
        seen_contexts.append(ctx)
        return {"criteria": [f"user can {t}" for t in value["topics"]]}

    compiled = (
        pipeline(IssueInput)
        .then("extract_topics", extract_topics)
        .parallel({"topics": lambda v, c: v["topics"], "business": biz_node, "qa": qa_node})
        .compile()
    )
    out = run(compiled.invoke({"title": "Add login"}))

    assert out == {
        "topics": ["add", "login"],
        "business": "business view of Add login: add, login",
        "qa": {"criteria": ["user can add", "user can login"]},
    }
    assert len(seen_contexts) == 2
    assert seen_contexts[0] is seen_contexts[1]
    assert seen_contexts[0] == IssueInput(title="Add login")


def test_validation_happens_before_any_step(run):
    _require_imports()
    invocations = []

    def counting(v, c):
        invocations.append(v)
        return v

    compiled = pipeline(IssueInput).then(counting).compile()
    with pytest.raises(InputValidationError) as exc:
        run(compiled.invoke({}))

    assert invocations == []
    assert exc.value.details["schema"] == "IssueInput"


def test_compiled_pipeline_is_usable_as_step(run):
    _require_imports()
    inner = pipeline(int).then(lambda v, c: v * 10).compile()
    outer = pipeline().then(lambda v, c: "4").then(inner).compile()

    assert isinstance(inner, CompiledPipeline)
    # o sub-pipeline valida (e converte) seu próprio input
    assert run(outer.invoke(None)) == 40


def test_run_is_a_synchronous_wrapper():
    _require_imports()
    compiled = pipeline().then(g).compile()
    assert compiled.run(1) == 4


def test_concurrent_invocations_are_independent(run):
    _require_imports()

    async def step(v, c):
        await asyncio.sleep(0)
        return v + 1

    compiled = (
        pipeline()
        .then("inc", step)
        .goto_if(lambda v, c: True, "inc", 2)
        .compile()
    )

    async def both():
        return await asyncio.gather(compiled.invoke(0), compiled.invoke(100))

    assert run(both()) == [3, 103]
