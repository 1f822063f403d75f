"""Public model re-exports for legal_intake.

Consumers should import from ``legal_intake.models`` rather than reaching
into sub-modules directly.
"""

# --- Questions ---
from legal_intake.models.question import (
    BaseQuestion,
    ChoiceQuestion,
    DateQuestion,
    FreeTextQuestion,
    MultiChoiceQuestion,
    NumberQuestion,
    Question,
    ValidationRule,
    Visibility,
    question_mapper,
)

# --- Session / step ---
from legal_intake.models.session import (
    IntakeSession,
    IntakeStep,
    Progress,
    QuestionPayload,
)

# --- Provider outcomes ---
from legal_intake.models.result import (
    Failure,
    FailureKind,
    ParseFailure,
    Parsed,
    ParseResult,
    ProviderResult,
    Skipped,
    Success,
)

# --- Analysis ---
from legal_intake.models.analysis import (
    Analysis,
    AnalysisRequest,
    AnalysisResult,
    Complexity,
    CostEstimate,
    Diagnostic,
    DirectoryEntry,
    RecommendedTemplate,
)

# --- Advisor / extraction ---
from legal_intake.models.advisor import (
    AdvisorAction,
    AdvisorOutput,
    AdvisorReply,
    ExtractedFields,
)

__all__ = [
    # Questions
    "BaseQuestion",
    "ChoiceQuestion",
    "DateQuestion",
    "FreeTextQuestion",
    "MultiChoiceQuestion",
    "NumberQuestion",
    "Question",
    "ValidationRule",
    "Visibility",
    "question_mapper",
    # Session
    "IntakeSession",
    "IntakeStep",
    "Progress",
    "QuestionPayload",
    # Provider outcomes
    "Failure",
    "FailureKind",
    "ParseFailure",
    "Parsed",
    "ParseResult",
    "ProviderResult",
    "Skipped",
    "Success",
    # Analysis
    "Analysis",
    "AnalysisRequest",
    "AnalysisResult",
    "Complexity",
    "CostEstimate",
    "Diagnostic",
    "DirectoryEntry",
    "RecommendedTemplate",
    # Advisor
    "AdvisorAction",
    "AdvisorOutput",
    "AdvisorReply",
    "ExtractedFields",
]
