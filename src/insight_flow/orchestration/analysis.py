"""
Pipelines de análise de issues e épicos.

Análise de issue (`build_issue_analysis_pipeline`):
    context   → contexto interno relevante (context store, opcional)
    personas  → parallel {business, architect, developer, qa}
    combine   → AnalysisState consolidado
    synthesis → parallel {questions, summary}
    result    → AnalysisResult

Análise de épico (`build_epic_analysis_pipeline`):
    research  → parallel de pesquisadores por persona (sub-pipelines)
    merge     → EpicAnalysis com critérios, perguntas, tópicos e análises
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from insight_flow.core.engine.executor import CompiledPipeline
from insight_flow.core.pipeline.builder import pipeline

from .memory import ContextStore
from .model import LanguageModel, SearchTool
from .personas import ARCHITECT, BUSINESS_ANALYST, DEVELOPER, QA_ENGINEER, load_personas
from .research import researcher
from .schemas import (
    AnalysisResult,
    AnalysisState,
    EpicAnalysis,
    EpicResults,
    IssueDocument,
    JiraIssueInput,
    Persona,
    PersonaAnalysis,
    QaAnalysis,
    QuestionList,
)


_FOCUS = {
    BUSINESS_ANALYST: """Analyze the Jira issue from a business perspective, focusing on:
1.  **Business Value**: What value does this change deliver to users and stakeholders?
2.  **Requirements**: Are the requirements complete, consistent and unambiguous?
3.  **Process Impact**: Which business processes are affected?
4.  **Stakeholders**: Who needs to be informed or involved?""",
    ARCHITECT: """Analyze the Jira issue from an architectural perspective, focusing on:
1.  **System Integrity**: How does this change affect the overall system architecture?
2.  **Scalability & Performance**: Are there any potential impacts on scalability or performance?
3.  **Security**: Does this introduce any new security vulnerabilities?
4.  **Maintainability**: How does this affect the long-term maintainability and technical debt of the system?
5.  **Integration**: What are the integration points with other systems or services?""",
    DEVELOPER: """Analyze the Jira issue from an implementation perspective, focusing on:
1.  **Implementation Approach**: What is the most straightforward way to implement this change?
2.  **Code Structure**: Which modules and components need to change?
3.  **Technical Debt**: Does this change add or remove technical debt?
4.  **Testing**: Which unit and integration tests are required?""",
    QA_ENGINEER: """Analyze the Jira issue from a testing perspective, focusing on:
1.  **Testability**: How can the proposed changes be effectively tested? Are there any parts that will be difficult to test?
2.  **Test Plan**: Outline a high-level test plan, including types of testing (e.g., unit, integration, end-to-end, regression).
3.  **Acceptance Criteria**: Define a clear, specific, and verifiable list of acceptance criteria that must be met for the issue to be considered 'done'.
4.  **Risks**: What are the primary risks from a quality and regression standpoint?""",
}


def _persona_prompt(persona: Persona, focus: str, state: AnalysisState) -> str:
    meta = state.issue.metadata
    components = ", ".join(meta.get("components") or []) or "None"
    return f"""You are a {persona.role} with expertise in:
- {persona.expertise}

{focus}

Context from internal systems:
{state.context}

Please analyze this Jira issue:
Title: {meta.get('title', '')}
Description: {meta.get('description') or 'No description provided'}
Components: {components}

{state.issue.page_content}"""


def _analyses(state: AnalysisState) -> str:
    return f"""Business Analysis:
{state.business_analysis}

Architectural Analysis:
{state.architectural_analysis}

Development Analysis:
{state.development_analysis}

QA Analysis:
{state.qa_analysis}"""


def format_qa_analysis(qa: QaAnalysis) -> str:
    criteria = "\n".join(f"- {ac}" for ac in qa.acceptance_criteria)
    return f"""
### Testing Perspective
{qa.analysis}

### Test Plan
{qa.test_plan}

### Acceptance Criteria
{criteria}
"""


def build_issue_analysis_pipeline(
    model: LanguageModel,
    *,
    store: Optional[ContextStore] = None,
    config: Optional[Dict[str, Any]] = None,
) -> CompiledPipeline:
    personas = load_personas(config)

    def with_context(state: AnalysisState, context: Any) -> AnalysisState:
        if store is None or state.context:
            return state
        query = str(state.issue.metadata.get("title") or state.issue.page_content[:200])
        return state.model_copy(update={"context": store.relevant_context(query)})

    def persona_node(key: str):
        async def node(state: AnalysisState, context: Any) -> PersonaAnalysis:
            return await model.structured(_persona_prompt(personas[key], _FOCUS[key], state), PersonaAnalysis)

        return node

    async def qa_node(state: AnalysisState, context: Any) -> str:
        qa = await model.structured(_persona_prompt(personas[QA_ENGINEER], _FOCUS[QA_ENGINEER], state), QaAnalysis)
        return format_qa_analysis(qa)

    def combine(results: Dict[str, Any], context: Any) -> AnalysisState:
        base: AnalysisState = results["state"]
        business: PersonaAnalysis = results["business"]
        architect: PersonaAnalysis = results["architect"]
        developer: PersonaAnalysis = results["developer"]
        return base.model_copy(
            update={
                "business_analysis": business.analysis,
                "architectural_analysis": architect.analysis,
                "development_analysis": developer.analysis,
                "qa_analysis": results["qa"],
                "recommendations": [
                    *base.recommendations,
                    *business.recommendations,
                    *architect.recommendations,
                    *developer.recommendations,
                ],
            }
        )

    async def questions(state: AnalysisState, context: Any) -> QuestionList:
        prompt = f"""
Based on the following analyses, identify the key questions that need to be answered.
Group related questions together and eliminate any duplicates.
Focus on questions that bridge multiple perspectives (business, architecture, development).

{_analyses(state)}

List the top 5-7 most important questions that need to be clarified, ordered by priority.
Return the questions as an array of objects, each with a 'type' and 'question' field.
"""
        return await model.structured(prompt, QuestionList)

    async def summary(state: AnalysisState, context: Any) -> str:
        prompt = f"""
You are a senior technical product manager tasked with synthesizing analysis from different perspectives into a clear, actionable overview.

Given the following detailed analyses, create a concise executive summary that:
1. Highlights the most important insights across all perspectives
2. Identifies any conflicting recommendations or open questions
3. Provides a clear "so what?" for the reader
4. Is formatted in clean markdown.

Do not simply list the outputs from each role. Synthesize them.

{_analyses(state)}

Format your response as a concise but comprehensive overview that a stakeholder could quickly read to understand the full scope and implications of this issue.
Focus on synthesizing insights rather than repeating individual points.
"""
        return await model.complete(prompt)

    def result(outputs: Dict[str, Any], context: Any) -> AnalysisResult:
        state: AnalysisState = outputs["state"]
        return AnalysisResult(
            business_analysis=state.business_analysis,
            architectural_analysis=state.architectural_analysis,
            development_analysis=state.development_analysis,
            qa_analysis=state.qa_analysis,
            questions=outputs["questions"].questions,
            recommendations=state.recommendations,
            summary=outputs["summary"],
        )

    def keep(state: AnalysisState, context: Any) -> AnalysisState:
        return state

    return (
        pipeline(AnalysisState)
        .then("context", with_context)
        .parallel(
            {
                "state": keep,
                "business": persona_node(BUSINESS_ANALYST),
                "architect": persona_node(ARCHITECT),
                "developer": persona_node(DEVELOPER),
                "qa": qa_node,
            },
            label="personas",
        )
        .then("combine", combine)
        .parallel({"state": keep, "questions": questions, "summary": summary}, label="synthesis")
        .then("result", result)
        .compile(config)
    )


async def analyze_issue(
    document: IssueDocument,
    model: LanguageModel,
    *,
    store: Optional[ContextStore] = None,
    config: Optional[Dict[str, Any]] = None,
) -> AnalysisResult:
    compiled = build_issue_analysis_pipeline(model, store=store, config=config)
    return await compiled.invoke({"issue": document})


# ---------------------------------------------------------------------------
# Épico
# ---------------------------------------------------------------------------

def _epic_context(issue: JiraIssueInput) -> str:
    return f"""
Title: {issue.title}
Description: {issue.description}
Components: {', '.join(issue.components or [])}
Acceptance Criteria: {', '.join(issue.acceptance_criteria or [])}
Linked Issues: {', '.join(issue.linked_issues or [])}
Labels: {', '.join(issue.labels or [])}
"""


def merge_epic(results: Dict[str, Any], issue: JiraIssueInput) -> EpicAnalysis:
    """Consolida os resultados dos pesquisadores (na ordem business, architect, developer, qa)."""
    roles = ("business", "architect", "developer", "qa")
    found = [results.get(role) for role in roles]
    merged = EpicResults(
        acceptance_criteria=[*(issue.acceptance_criteria or [])],
        analysis={role: (r.analysis if r is not None else None) for role, r in zip(roles, found)},
    )
    for r in found:
        if r is None:
            continue
        merged.acceptance_criteria.extend(r.acceptance_criteria)
        merged.questions.extend(r.questions)
        merged.research_topics.extend(r.research_topics)
    return EpicAnalysis(context=_epic_context(issue), input=issue, results=merged)


def build_epic_analysis_pipeline(
    model: LanguageModel,
    *,
    search: Optional[SearchTool] = None,
    store: Optional[ContextStore] = None,
    config: Optional[Dict[str, Any]] = None,
) -> CompiledPipeline:
    personas = load_personas(config)

    def make(key: str):
        return researcher(personas[key], model, search=search, store=store, config=config)

    return (
        pipeline(JiraIssueInput)
        .parallel(
            {
                "business": make(BUSINESS_ANALYST),
                "architect": make(ARCHITECT),
                "developer": make(DEVELOPER),
                "qa": make(QA_ENGINEER),
            },
            label="research",
        )
        .then("merge", merge_epic)
        .compile(config)
    )
