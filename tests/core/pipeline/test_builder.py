# tests/core/pipeline/test_builder.py
"""
Testes do Builder (`Pipeline`) de pipelines.

Os testes asseguram que:
- cada chamada do builder retorna uma nova instância (imutabilidade)
- labels são registrados no índice do Step rotulado
- labels duplicados são rejeitados no momento do registro
- argumentos estruturalmente inválidos falham antes de qualquer execução
- um pipeline compilado não é afetado por chamadas posteriores do builder

Decisões arquiteturais:
    - A construção não executa Steps
    - Erros de definição são `PipelineDefinitionError` (ou subclasses)
"""

import pytest

try:
    from insight_flow.core.exceptions import DuplicateLabelError, PipelineDefinitionError
    from insight_flow.core.pipeline import Pipeline, StepKind, pipeline
except Exception as e:  # noqa: BLE001
    pipeline = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing pipeline builder. Implement:\n"
            "- src/insight_flow/core/pipeline/builder.py (Pipeline, pipeline)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _inc(x, ctx):
    return x + 1


def test_builder_calls_return_new_instances():
    _require_imports()
    p0 = pipeline()
    p1 = p0.then(_inc)
    p2 = p1.then("second", _inc)

    assert isinstance(p0, Pipeline)
    assert len(p0.steps) == 0
    assert len(p1.steps) == 1
    assert len(p2.steps) == 2
    assert "second" not in p1.labels


def test_labels_point_to_step_index():
    _require_imports()
    p = (
        pipeline()
        .then("a", _inc)
        .then(_inc)
        .parallel([_inc, _inc], label="fan")
        .do_while(lambda x, c: False, _inc, label="loop")
    )
    assert dict(p.labels) == {"a": 0, "fan": 2, "loop": 3}
    assert [s.kind for s in p.steps] == [StepKind.THEN, StepKind.THEN, StepKind.PARALLEL, StepKind.DO_WHILE]
    assert p.steps[1].display_name(1) == "Step 1"
    assert p.steps[2].display_name(2) == "fan"


def test_duplicate_label_is_rejected():
    _require_imports()
    p = pipeline().then("enrich", _inc)
    with pytest.raises(DuplicateLabelError) as exc:
        p.then("enrich", _inc)
    assert exc.value.details["label"] == "enrich"
    assert exc.value.details["index"] == 0


def test_duplicate_label_across_step_kinds_is_rejected():
    _require_imports()
    p = pipeline().then("x", _inc)
    with pytest.raises(DuplicateLabelError):
        p.goto_if(lambda v, c: False, "x", 1, label="x")


def test_then_with_label_requires_function():
    _require_imports()
    with pytest.raises(PipelineDefinitionError):
        pipeline().then("lonely")


def test_empty_label_is_rejected():
    _require_imports()
    with pytest.raises(PipelineDefinitionError):
        pipeline().then("  ", _inc)


@pytest.mark.parametrize("bad", [-1, 1.5, True, "3"])
def test_goto_if_max_retries_must_be_non_negative_int(bad):
    _require_imports()
    with pytest.raises(PipelineDefinitionError):
        pipeline().then("a", _inc).goto_if(lambda v, c: True, "a", bad)


def test_branch_requires_pipeline_sub_definitions():
    _require_imports()
    with pytest.raises(PipelineDefinitionError):
        pipeline().branch([(lambda v, c: True, _inc)])


def test_branch_defers_sub_pipeline_compilation():
    _require_imports()
    sub = pipeline().goto_if(lambda v, c: True, "nowhere", 1)
    p = pipeline().branch([(lambda v, c: True, sub)], label="route")
    assert p.steps[0].kind == StepKind.BRANCH
    assert p.steps[0].branches[0][1] is sub


def test_compiled_pipeline_is_not_affected_by_later_builder_calls(run):
    _require_imports()
    base = pipeline().then(_inc)
    compiled = base.compile()
    base.then(_inc).then(_inc)

    assert compiled.step_count == 1
    assert run(compiled.invoke(1)) == 2


def test_building_does_not_execute_steps():
    _require_imports()
    calls = []

    def spy(x, ctx):
        calls.append(x)
        return x

    pipeline().then(spy).parallel([spy]).for_each(spy).compile()
    assert calls == []


def test_then_accepts_label_keyword(run):
    _require_imports()
    p = pipeline().then(_inc, label="inc").goto_if(lambda v, c: v < 3, "inc", 5)
    assert dict(p.labels) == {"inc": 0}
    assert run(p.compile().invoke(0)) == 3


def test_then_rejects_label_given_twice():
    _require_imports()
    with pytest.raises(PipelineDefinitionError):
        pipeline().then("inc", _inc, label="other")


def test_then_rejects_two_functions():
    _require_imports()
    with pytest.raises(PipelineDefinitionError):
        pipeline().then(_inc, _inc)
