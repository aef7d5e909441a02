"""
Modelos de dados da orquestração de análise de issues.

Estes modelos servem a dois propósitos:
    - schema de input dos pipelines (validado antes do primeiro Step)
    - schema de saída estruturada solicitada ao `LanguageModel`

As descrições dos campos (`Field(description=...)`) fazem parte do
contrato com o modelo de linguagem e aparecem no JSON Schema gerado.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Entradas
# ---------------------------------------------------------------------------

class Persona(BaseModel):
    role: str
    expertise: str
    focus: str


class JiraIssueInput(BaseModel):
    """Visão normalizada de uma issue usada como input dos pipelines."""

    title: Optional[str] = None
    description: Optional[str] = None
    components: Optional[List[str]] = None
    acceptance_criteria: Optional[List[str]] = None
    linked_issues: Optional[List[str]] = None
    labels: Optional[List[str]] = None
    priority: Optional[str] = None
    epic_link: Optional[str] = None


class IssueDocument(BaseModel):
    """Texto renderizado de uma issue e metadados mínimos (key, title, issue_url)."""

    page_content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Pesquisa por persona
# ---------------------------------------------------------------------------

class Question(BaseModel):
    type: str = Field(description="the type of question (engineering, business, testing, development, architecture)")
    question: str = Field(description="the question that needs to be answered")


class ResearchTopics(BaseModel):
    research_topics: List[str] = Field(description="topics to research to be used in a web search")
    questions: List[Question] = Field(description="the questions that need to be answered to complete the jira issue")


class ResearchResults(BaseModel):
    questions: List[Question] = Field(
        default_factory=list,
        description="the questions that need to be answered to complete the jira issue",
    )
    analysis: str = Field(
        default="",
        description="a detailed analysis of the jira issue and the research topics",
    )
    acceptance_criteria: List[str] = Field(
        default_factory=list,
        description="the acceptance criteria for the jira issue you think we need to add to the epic",
    )
    research_topics: List[str] = Field(
        default_factory=list,
        description="the research topics for the jira issue you think we need to add to the epic",
    )


class GherkinCriteria(BaseModel):
    acceptance_criteria: List[str] = Field(
        description="acceptance criteria in Gherkin syntax, e.g. 'Given [context], When [action], Then [outcome].'"
    )


class ResearcherState(BaseModel):
    persona: Persona
    jira_issue: JiraIssueInput
    research_topics: Optional[List[str]] = None
    questions: Optional[List[Question]] = None
    context: Optional[List[str]] = None
    results: Optional[ResearchResults] = None


# ---------------------------------------------------------------------------
# Análise por persona
# ---------------------------------------------------------------------------

class PersonaAnalysis(BaseModel):
    analysis: str = Field(description="Detailed analysis from the expert's perspective")
    recommendations: List[str] = Field(description="List of specific recommendations")
    risks: List[str] = Field(description="List of potential risks or concerns")


class QaAnalysis(BaseModel):
    analysis: str = Field(description="Detailed analysis from the QA perspective, focusing on testability and risks.")
    acceptance_criteria: List[str] = Field(
        description="List of specific, verifiable acceptance criteria for the issue."
    )
    test_plan: str = Field(description="A high-level test plan outlining the testing strategy.")


class QuestionList(BaseModel):
    questions: List[Question] = Field(
        description="5-7 key questions that need to be answered, ordered by priority. "
        "type must be one of: Business, Technical, Implementation."
    )


class AnalysisState(BaseModel):
    issue: IssueDocument
    context: str = ""
    business_analysis: str = ""
    architectural_analysis: str = ""
    development_analysis: str = ""
    qa_analysis: str = ""
    recommendations: List[str] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)
    summary: Optional[str] = None


class AnalysisResult(BaseModel):
    business_analysis: str
    architectural_analysis: str
    development_analysis: str
    qa_analysis: str
    questions: List[Question]
    recommendations: List[str]
    summary: Optional[str] = None


# ---------------------------------------------------------------------------
# Análise de épico
# ---------------------------------------------------------------------------

class EpicResults(BaseModel):
    acceptance_criteria: List[str] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)
    research_topics: List[str] = Field(default_factory=list)
    # chave = papel (business, architect, developer, qa)
    analysis: Dict[str, Optional[str]] = Field(default_factory=dict)


class EpicAnalysis(BaseModel):
    context: str
    input: JiraIssueInput
    results: EpicResults
