"""
Sub-pipeline de pesquisa por persona.

Fluxo:
    research        → tópicos de pesquisa + perguntas iniciais
    gather          → parallel {web_search, documents}
    merge_context   → contexto único (documentos internos + web) e
                      indexação dos resultados web no context store
    research_plan   → análise refinada (ResearchResults)
    refine          → goto_if(perguntas em aberto, "research_plan", max_refinements)
    research_report → critérios de aceite em Gherkin para as perguntas restantes

O output do pipeline é o `ResearcherState` final. `researcher(persona)`
embrulha o pipeline em um Step que recebe uma issue e retorna apenas
`ResearchResults`.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from insight_flow.core.config.defaults import resolve_config
from insight_flow.core.engine.executor import CompiledPipeline
from insight_flow.core.pipeline.builder import pipeline

from .memory import ContextStore
from .model import LanguageModel, SearchTool
from .schemas import (
    GherkinCriteria,
    JiraIssueInput,
    Persona,
    Question,
    ResearcherState,
    ResearchResults,
    ResearchTopics,
)


def format_questions(questions: List[Question]) -> str:
    return "\n".join(f"Type: {q.type}\nQuestion: {q.question}" for q in questions)


def has_open_questions(state: ResearcherState, context: Any = None) -> bool:
    return bool(state.results and state.results.questions)


def build_research_pipeline(
    model: LanguageModel,
    *,
    search: Optional[SearchTool] = None,
    store: Optional[ContextStore] = None,
    config: Optional[Dict[str, Any]] = None,
) -> CompiledPipeline:
    cfg = resolve_config(config)
    max_refinements = int(cfg["research"]["max_refinements"])

    async def research(state: ResearcherState, context: Any) -> ResearcherState:
        persona, issue = state.persona, state.jira_issue
        prompt = f"""
As a {persona.role} with expertise in {persona.expertise}, focusing on {persona.focus},
analyze the following Jira issue and identify key research topics to ensure a comprehensive understanding for implementation.

Jira Issue Details:
Title: {issue.title or ''}
Description: {issue.description or 'no description'}
Components: {', '.join(issue.components or [])}
Acceptance Criteria: {chr(10).join(issue.acceptance_criteria or [])}

Based on your persona, what are the primary questions you would ask, and what specific topics would you research
to address the requirements and potential challenges of this issue?
"""
        plan = await model.structured(prompt, ResearchTopics)
        return state.model_copy(update={"research_topics": plan.research_topics, "questions": plan.questions})

    async def web_search(state: ResearcherState, context: Any) -> List[str]:
        if search is None or not state.research_topics:
            return []
        results: List[str] = []
        for topic in state.research_topics:
            try:
                found = await search.search(topic)
            except Exception as e:
                # uma busca com falha não invalida as demais
                results.append(f"Topic {topic} failed with error: {e}")
                continue
            results.append(f"Topic: {topic}\n{found}")
        return results

    def documents(state: ResearcherState, context: Any) -> List[str]:
        if store is None or not state.research_topics:
            return list(state.context or [])
        found: List[str] = list(state.context or [])
        for topic in state.research_topics:
            for text in store.search(topic):
                if text not in found:
                    found.append(text)
        return found

    def merge_context(gathered: Dict[str, Any], context: Any) -> ResearcherState:
        state: ResearcherState = gathered["state"]
        web: List[str] = gathered["web_search"]
        if store is not None:
            for content in web:
                store.add(content, {"source": "web-search", "persona": state.persona.role})
        return state.model_copy(update={"context": [*gathered["documents"], *web]})

    async def research_plan(state: ResearcherState, context: Any) -> ResearcherState:
        persona, issue, results = state.persona, state.jira_issue, state.results
        questions = results.questions if results else (state.questions or [])
        prompt = f"""
As a {persona.role}, you have conducted initial research on the Jira issue: "{issue.title}".

Initial Analysis:
{results.analysis if results else ''}

Questions:
{format_questions(questions)}

Web Search Results:
{chr(10).join(state.context or [])}

Based on this new context, refine your research plan.
What are the remaining open questions?
What new research topics should be explored?
Update the analysis and acceptance criteria based on what you have learned.
"""
        refined = await model.structured(prompt, ResearchResults)
        return state.model_copy(update={"results": refined})

    async def research_report(state: ResearcherState, context: Any) -> ResearcherState:
        results = state.results
        if results is None or not results.questions:
            return state
        bullets = "\n- ".join(f"Type: {q.type}\nQuestion: {q.question}" for q in results.questions)
        prompt = f"""Based on the following unanswered research questions, please generate acceptance criteria in clean Gherkin format (Given/When/Then).
These acceptance criteria will be added to a Jira ticket to ensure the research tasks are completed.

Unanswered Questions:
- {bullets}

Generate a list of acceptance criteria based on these questions."""
        gherkin = await model.structured(prompt, GherkinCriteria)
        updated = results.model_copy(
            update={"acceptance_criteria": [*results.acceptance_criteria, *gherkin.acceptance_criteria]}
        )
        return state.model_copy(update={"results": updated})

    def keep(state: ResearcherState, context: Any) -> ResearcherState:
        return state

    return (
        pipeline(ResearcherState)
        .then("research", research)
        .parallel({"state": keep, "web_search": web_search, "documents": documents}, label="gather")
        .then("merge_context", merge_context)
        .then("research_plan", research_plan)
        .goto_if(has_open_questions, "research_plan", max_refinements, label="refine")
        .then("research_report", research_report)
        .compile(config)
    )


def researcher(
    persona: Persona,
    model: LanguageModel,
    *,
    search: Optional[SearchTool] = None,
    store: Optional[ContextStore] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Callable[[Any, Any], Any]:
    """Step que executa a pesquisa de `persona` sobre uma issue."""
    compiled = build_research_pipeline(model, search=search, store=store, config=config)

    async def run(issue: JiraIssueInput, context: Any = None) -> Optional[ResearchResults]:
        # chamado como Step: registra no trace da run externa, se houver
        state = await compiled({"persona": persona, "jira_issue": issue}, context)
        return state.results

    return run
