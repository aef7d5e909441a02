# tests/core/engine/test_executor_control_flow.py
"""
Testes de controle de fluxo: loops, saltos e branches.

Os testes asseguram que:
- `do_while` pode executar zero vezes; `do_until` executa ao menos uma vez
- `goto_if` com condição sempre falsa nunca salta
- o contador de `goto_if` persiste por Step durante toda a invocação
- `goto_step` salta para o label calculado
- `branch` executa apenas o primeiro predicado verdadeiro, como execução aninhada
- labels não resolvidos são fatais por padrão e no-op com `unresolved_label: ignore`
"""

import pytest

try:
    from insight_flow import pipeline
    from insight_flow.core.exceptions import (
        BranchExhaustionError,
        EngineConfigurationError,
        InputValidationError,
        UnresolvedLabelError,
    )
except Exception as e:  # noqa: BLE001
    pipeline = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


IGNORE = {"engine": {"unresolved_label": "ignore"}}


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing executor. Import error: {_IMPORT_ERR}")


# ---------------------------------------------------------------------------
# Loops
# ---------------------------------------------------------------------------

def test_do_while_false_on_first_check_runs_zero_times(run):
    _require_imports()
    calls = []

    def action(v, c):
        calls.append(v)
        return v + 1

    compiled = pipeline().do_while(lambda v, c: False, action).compile()
    assert run(compiled.invoke(5)) == 5
    assert calls == []


def test_do_while_loops_until_condition_fails(run):
    _require_imports()
    compiled = pipeline().do_while(lambda v, c: v < 10, lambda v, c: v + 3).compile()
    assert run(compiled.invoke(0)) == 12


def test_do_until_runs_at_least_once(run):
    _require_imports()
    calls = []

    def action(v, c):
        calls.append(v)
        return v + 1

    compiled = pipeline().do_until(lambda v, c: True, action).compile()
    assert run(compiled.invoke(5)) == 6
    assert calls == [5]


def test_loop_functions_receive_initial_context(run):
    _require_imports()
    seen = []

    def cond(v, c):
        seen.append(c)
        return v >= c

    compiled = pipeline().do_until(cond, lambda v, c: v + 1).compile()
    assert run(compiled.invoke(3)) == 4
    assert set(seen) == {3}


# ---------------------------------------------------------------------------
# goto_if / goto_step
# ---------------------------------------------------------------------------

def test_goto_if_never_jumps_when_condition_false(run):
    _require_imports()
    visits = []

    def start(v, c):
        visits.append(v)
        return v

    compiled = (
        pipeline()
        .then("start", start)
        .goto_if(lambda v, c: False, "start", 5)
        .then(lambda v, c: v + ["end"])
        .compile()
    )
    assert run(compiled.invoke([])) == ["end"]
    assert visits == [[]]


def test_goto_if_is_bounded_by_max_retries(run):
    _require_imports()
    visits = []

    def step(v, c):
        visits.append(v)
        return v + 1

    compiled = (
        pipeline()
        .then("retry_me", step)
        .goto_if(lambda v, c: True, "retry_me", 3)
        .compile()
    )
    assert run(compiled.invoke(0)) == 4
    assert visits == [0, 1, 2, 3]


def test_goto_if_zero_max_retries_never_jumps(run):
    _require_imports()
    compiled = pipeline().then("a", lambda v, c: v + 1).goto_if(lambda v, c: True, "a", 0).compile()
    assert run(compiled.invoke(0)) == 1


def test_goto_if_counter_persists_across_reentry(run):
    """
    O contador de um `goto_if` não é zerado quando o Step é reentrado
    a partir de outro salto: `max_retries` limita o total de saltos na run.
    """
    _require_imports()
    visits = []

    def a(v, c):
        visits.append(v)
        return v + 1

    compiled = (
        pipeline()
        .then("a", a)
        .goto_if(lambda v, c: True, "a", 2, label="inner")
        .goto_if(lambda v, c: True, "a", 1, label="outer")
        .compile()
    )
    # a, inner→a, inner→a, outer→a; inner já esgotado na reentrada
    assert run(compiled.invoke(0)) == 4
    assert visits == [0, 1, 2, 3]


def test_goto_if_counters_reset_between_invocations(run):
    _require_imports()
    compiled = pipeline().then("a", lambda v, c: v + 1).goto_if(lambda v, c: True, "a", 2).compile()
    assert run(compiled.invoke(0)) == 3
    assert run(compiled.invoke(0)) == 3


def test_goto_if_can_jump_forward(run):
    _require_imports()
    compiled = (
        pipeline()
        .goto_if(lambda v, c: v > 10, "done", 1)
        .then(lambda v, c: v * 100)
        .then("done", lambda v, c: v + 1)
        .compile()
    )
    assert run(compiled.invoke(50)) == 51
    assert run(compiled.invoke(1)) == 101


@pytest.mark.parametrize("value,expected", [(1, "small:1"), (50, "big:50")])
def test_goto_step_jumps_to_computed_label(run, value, expected):
    _require_imports()
    from insight_flow import Jump

    compiled = (
        pipeline()
        .goto_step(lambda v, c: "small" if v < 10 else "big")
        # salta para o fim (índice == step_count)
        .then("small", lambda v, c: Jump(3, f"small:{v}"))
        .then("big", lambda v, c: f"big:{v}")
        .compile()
    )
    assert run(compiled.invoke(value)) == expected


# ---------------------------------------------------------------------------
# Labels não resolvidos
# ---------------------------------------------------------------------------

def test_unknown_goto_if_target_fails_at_compile():
    _require_imports()
    p = pipeline().then("a", lambda v, c: v).goto_if(lambda v, c: True, "missing", 1)
    with pytest.raises(UnresolvedLabelError) as exc:
        p.compile()
    assert exc.value.details["labels"] == ["missing"]


def test_unknown_goto_step_target_fails_at_runtime(run):
    _require_imports()
    compiled = pipeline().goto_step(lambda v, c: "nowhere").then(lambda v, c: v + 1).compile()
    with pytest.raises(UnresolvedLabelError) as exc:
        run(compiled.invoke(1))
    assert exc.value.details["label"] == "nowhere"


def test_ignore_policy_makes_unresolved_jumps_noop(run):
    _require_imports()
    compiled = (
        pipeline()
        .goto_if(lambda v, c: True, "missing", 3)
        .goto_step(lambda v, c: "nowhere")
        .then(lambda v, c: v + 1)
        .compile(IGNORE)
    )
    assert run(compiled.invoke(1)) == 2


def test_invalid_unresolved_label_policy_is_rejected():
    _require_imports()
    with pytest.raises(EngineConfigurationError):
        pipeline().compile({"engine": {"unresolved_label": "warn"}})


# ---------------------------------------------------------------------------
# Branch
# ---------------------------------------------------------------------------

def _tagging(tag, calls):
    def step(v, c):
        calls.append(tag)
        return f"{tag}:{v}"

    return pipeline().then(step)


def test_branch_runs_only_first_true_predicate(run):
    _require_imports()
    calls = []
    compiled = (
        pipeline()
        .branch(
            [
                (lambda v, c: False, _tagging("P1", calls)),
                (lambda v, c: True, _tagging("P2", calls)),
                (lambda v, c: True, _tagging("P3", calls)),
            ]
        )
        .compile()
    )
    assert run(compiled.invoke("x")) == "P2:x"
    assert calls == ["P2"]


def test_branch_without_match_raises(run):
    _require_imports()
    compiled = pipeline().branch([(lambda v, c: False, pipeline())]).compile()
    with pytest.raises(BranchExhaustionError):
        run(compiled.invoke(1))


def test_branch_sub_pipeline_gets_fresh_context(run):
    """O contexto inicial do sub-pipeline é o valor corrente, não o input externo."""
    _require_imports()
    sub = pipeline().then(lambda v, c: {"value": v, "context": c})
    compiled = (
        pipeline()
        .then(lambda v, c: v * 2)
        .branch([(lambda v, c: True, sub)])
        .compile()
    )
    assert run(compiled.invoke(3)) == {"value": 6, "context": 6}


def test_branch_sub_pipeline_schema_is_applied(run):
    _require_imports()
    compiled = (
        pipeline()
        .branch([(lambda v, c: True, pipeline(int).then(lambda v, c: v + 1))])
        .compile()
    )
    assert run(compiled.invoke("41")) == 42
    with pytest.raises(InputValidationError):
        run(compiled.invoke("not a number"))


def test_branch_sub_pipeline_has_own_goto_counters(run):
    _require_imports()
    sub = pipeline().then("s", lambda v, c: v + 1).goto_if(lambda v, c: True, "s", 1)
    compiled = (
        pipeline()
        .then("outer", lambda v, c: v)
        .branch([(lambda v, c: True, sub)], label="route")
        .goto_if(lambda v, c: v < 3, "outer", 5)
        .compile()
    )
    # cada execução do sub-pipeline soma 2 (um salto interno por execução)
    assert run(compiled.invoke(0)) == 4


def test_branch_sub_pipelines_are_compiled_with_outer_config(run):
    _require_imports()
    sub = pipeline().goto_if(lambda v, c: True, "nowhere", 1).then(lambda v, c: v * 2)
    definition = pipeline().branch([(lambda v, c: True, sub)])

    assert run(definition.compile(IGNORE).invoke(3)) == 6
    with pytest.raises(UnresolvedLabelError) as exc:
        definition.compile()
    assert exc.value.details["labels"] == ["nowhere"]


def test_precompiled_branch_sub_pipeline_is_used_as_is(run):
    _require_imports()
    sub = pipeline().goto_step(lambda v, c: "nowhere").then(lambda v, c: v + 1).compile()
    compiled = pipeline().branch([(lambda v, c: True, sub)]).compile(IGNORE)
    # o sub-pipeline mantém a política "error" com que foi compilado
    with pytest.raises(UnresolvedLabelError):
        run(compiled.invoke(1))
