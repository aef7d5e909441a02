# src/insight_flow/core/__init__.py
"""
Core do Insight Flow.

Este pacote contém o engine de pipelines independente da camada de
orquestração: nenhuma dependência de LLM, Jira ou context store.

Componentes principais:
    - config       → resolução de configuração (merge, defaults, hashing)
    - pipeline     → Builder imutável, Steps de controle e schema de input
    - engine       → compilação e interpretação de pipelines
    - traceability → RunTrace e Event Log

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo erro é tipado e rastreável
    - Definição (build) e execução (invoke) são fases separadas
    - Invocações não compartilham estado mutável
"""
