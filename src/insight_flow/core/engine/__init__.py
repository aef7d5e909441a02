# src/insight_flow/core/engine/__init__.py
"""
Engine do Insight Flow.

Este pacote contém o `CompiledPipeline` e o laço de interpretação que
executa seus Steps, movendo o program counter de acordo com o retorno
de cada Step (`Continue` ou `Jump`).

Invariantes:
    - O input é validado antes de qualquer Step
    - Cada invocação possui seu próprio estado de execução
    - A primeira falha aborta a invocação

Limites explícitos:
    - Não persiste resultados automaticamente
    - Não aplica retry implícito
"""

from .executor import CompiledPipeline, RunState, compile_pipeline

__all__ = ["CompiledPipeline", "RunState", "compile_pipeline"]
