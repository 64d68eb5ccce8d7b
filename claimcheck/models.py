import re
from datetime import date, datetime, timezone
from typing import List, Literal, Optional, Tuple, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Severity = Literal["high", "medium", "low"]
SegmentKind = Literal["plain", "violation"]
OverallAlignment = Literal["aligned", "minor_issues", "major_issues"]
IssueCategory = Literal[
    "theme",
    "message",
    "scene_content",
    "duration",
    "target_audience",
    "brand_guideline",
    "restricted_claim",
]
AffectedElement = Literal[
    "overall_theme",
    "key_message",
    "scene",
    "duration",
    "target_content",
    "claim_content",
]


class Rule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique rule identifier")
    category: str = Field(..., pattern=r"^[a-z][a-z0-9-]*$", description="Restricted-claim grouping")
    severity: Severity
    pattern: str = Field(..., min_length=1, description="Regular expression, matched case-insensitively")
    description: str
    legal_reference: str = Field(..., description="Statute or policy clause the rule enforces")
    risk_weight: float = Field(..., ge=1, le=10)
    example: Optional[str] = Field(None, description="Illustrative phrase or suggested replacement")

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, value: str) -> str:
        try:
            re.compile(value, re.IGNORECASE)
        except re.error as e:
            raise ValueError(f"invalid pattern {value!r}: {e}")
        return value

    @property
    def compiled(self) -> "re.Pattern[str]":
        # re keeps its own compile cache, so repeated lookups stay cheap
        return re.compile(self.pattern, re.IGNORECASE)


class RawMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule: Rule
    matched_text: str
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    context: str = ""
    confidence: float = Field(..., gt=0.0, le=1.0)

    @model_validator(mode="after")
    def _span_is_ordered(self) -> "RawMatch":
        if self.end < self.start:
            raise ValueError("match end precedes start")
        return self

    @property
    def span(self) -> Tuple[int, int]:
        return self.start, self.end


class CheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_violations: bool
    matches: List[RawMatch] = Field(default_factory=list, description="Matches sorted by span start")
    risk_score: float = Field(..., ge=0.0, le=10.0)
    summary: str
    recommendations: List[str] = Field(default_factory=list)


class HighlightSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    text: str
    kind: SegmentKind
    match: Optional[RawMatch] = None

    @property
    def is_violation(self) -> bool:
        return self.kind == "violation"


class Scene(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    scene_number: int = Field(..., ge=1)
    description: str = ""
    duration: Optional[int] = Field(None, ge=0, description="Duration in seconds")
    camera_angle: Optional[str] = None
    notes: Optional[str] = None


class Storyboard(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_content: str = Field("", description="Full raw text the storyboard was submitted as")
    title: Optional[str] = None
    overall_theme: Optional[str] = None
    key_messages: Optional[List[str]] = None
    scenes: Optional[List[Scene]] = None
    target_duration: Optional[int] = Field(None, ge=0)
    estimated_budget: Optional[float] = None
    deliverables: Optional[List[str]] = None

    def scannable_text(self) -> str:
        """Text to run the restricted-claim scan over."""
        if self.message_content:
            return self.message_content
        parts = [self.title or "", self.overall_theme or ""]
        parts.extend(self.key_messages or [])
        parts.extend(scene.description for scene in self.scenes or [])
        return "\n".join(p for p in parts if p)


class Brief(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    category: str = ""
    brand_name: Optional[str] = None
    product_name: Optional[str] = None
    product_features: Optional[str] = None
    campaign_objective: str = ""
    campaign_target: str = ""
    messages_to_convey: List[str] = Field(default_factory=list)
    target_platforms: List[str] = Field(default_factory=list)
    budget: Optional[float] = Field(None, ge=0)
    deadline: Optional[date] = None

    @field_validator("messages_to_convey", mode="before")
    @classmethod
    def _normalize_messages(cls, value: Union[str, List[str], None]) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [m for m in value if m and m.strip()]


class ClaimInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    violated_text: str
    legal_reference: str
    risk_weight: float


class AlignmentIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: IssueCategory
    severity: Severity
    title: str
    description: str
    affected_element: AffectedElement
    affected_element_id: Optional[str] = None
    suggestion: Optional[str] = None
    claim: Optional[ClaimInfo] = Field(None, description="Only set for restricted_claim issues")


class AlignmentResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"alignment-{uuid.uuid4()}")
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    overall_alignment: OverallAlignment
    issues: List[AlignmentIssue] = Field(default_factory=list)
    confidence: int = Field(..., ge=60, le=100)
    check_result: CheckResult


class TextRequest(BaseModel):
    text: str = Field(..., description="Text to scan for restricted claims")


class CheckResponse(BaseModel):
    result: CheckResult
    segments: List[HighlightSegment]
    product_categories: List[str] = Field(default_factory=list)


class AlignmentRequest(BaseModel):
    brief: Brief
    storyboard: Optional[Storyboard] = None
    message: Optional[str] = Field(None, description="Raw chat message to extract a storyboard from")

    @model_validator(mode="after")
    def _one_source(self) -> "AlignmentRequest":
        if self.storyboard is None and self.message is None:
            raise ValueError("either storyboard or message is required")
        return self
