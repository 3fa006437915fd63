"""
Pydantic models for ClinicalTrials.gov data and tool inputs/outputs.

Study records themselves stay plain dicts: the API's nested document is
passed through to callers, and only the trend extractors look inside it.
Models that travel over the wire serialise with camelCase aliases to match
the API's own naming.
"""

import re
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from clinicaltrials_mcp.constants import (
    MAX_NCT_IDS_PER_REQUEST,
    SEARCH_DEFAULT_PAGE_SIZE,
    SEARCH_MAX_PAGE_SIZE,
)

Study = dict[str, Any]

NCT_ID_PATTERN = r"^[Nn][Cc][Tt]\d+$"
STRICT_NCT_ID_PATTERN = r"^[Nn][Cc][Tt]\d{8}$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ------------------------------------------------------------------
# Search parameters
# ------------------------------------------------------------------


class OverallStatus(str, Enum):
    ACTIVE_NOT_RECRUITING = "ACTIVE_NOT_RECRUITING"
    COMPLETED = "COMPLETED"
    ENROLLING_BY_INVITATION = "ENROLLING_BY_INVITATION"
    NOT_YET_RECRUITING = "NOT_YET_RECRUITING"
    RECRUITING = "RECRUITING"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"
    WITHDRAWN = "WITHDRAWN"
    UNKNOWN = "UNKNOWN"


class StudyQuery(BaseModel):
    """Ranking search terms, one per ClinicalTrials.gov ``query.*`` parameter."""

    model_config = ConfigDict(frozen=True)

    cond: str | None = Field(None, description="Search for conditions or diseases.")
    term: str | None = Field(
        None,
        description="Search for other terms like interventions, outcomes, or sponsors.",
    )
    locn: str | None = Field(None, description="Search for study locations.")
    titles: str | None = Field(
        None, description="Search within study titles or acronyms."
    )
    intr: str | None = Field(
        None, description="Search for specific interventions or treatments."
    )
    outc: str | None = Field(None, description="Search for specific outcome measures.")
    spons: str | None = Field(None, description="Search for sponsors or collaborators.")
    id: str | None = Field(
        None, description="Search for study identifiers (e.g., NCT ID)."
    )


class GeoFilter(BaseModel):
    """A point and radius; serialised as ``distance(lat,lon,radiusunit)``."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius: float = Field(gt=0)
    unit: Literal["km", "mi"] = "km"

    def to_param(self) -> str:
        return (
            f"distance({_fmt_number(self.latitude)},{_fmt_number(self.longitude)},"
            f"{_fmt_number(self.radius)}{self.unit})"
        )


def _fmt_number(value: float) -> str:
    """Render 10.0 as '10', -74.006 as '-74.006' and 1e-05 as '0.00001'."""
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


class StudyFilter(_CamelModel):
    """Non-ranking filters, one per ClinicalTrials.gov ``filter.*`` parameter."""

    model_config = ConfigDict(frozen=True)

    ids: list[str] | None = Field(
        None, description="Return only studies with the specified NCT IDs."
    )
    overall_status: list[OverallStatus] | None = Field(
        None, description="Filter results by one or more study statuses."
    )
    geo: GeoFilter | None = Field(
        None,
        description="Filter results to a geographic area by providing a point and radius.",
    )
    advanced: str | None = Field(
        None, description="Apply an advanced filter using Essie expression syntax."
    )


class SearchSpec(BaseModel):
    """Ranking query plus non-ranking filter for one search."""

    model_config = ConfigDict(frozen=True)

    query: StudyQuery | None = None
    filter: StudyFilter | None = None


class PagedStudies(_CamelModel):
    """One page of search results from ``GET /studies``."""

    studies: list[Study] = []
    next_page_token: str | None = None
    total_count: int | None = None


# ------------------------------------------------------------------
# Trend analysis
# ------------------------------------------------------------------


class AnalysisType(str, Enum):
    COUNT_BY_STATUS = "countByStatus"
    COUNT_BY_COUNTRY = "countByCountry"
    COUNT_BY_SPONSOR_TYPE = "countBySponsorType"
    COUNT_BY_PHASE = "countByPhase"


class AnalyzeTrendsInput(SearchSpec):
    """A search spec plus the ordered, non-empty list of analyses to run."""

    analysis_type: list[AnalysisType] = Field(min_length=1)

    @field_validator("analysis_type", mode="before")
    @classmethod
    def coerce_single_kind(cls, value: Any) -> Any:
        if isinstance(value, (str, AnalysisType)):
            return [value]
        return value

    @field_validator("analysis_type")
    @classmethod
    def drop_repeated_kinds(cls, value: list[AnalysisType]) -> list[AnalysisType]:
        return list(dict.fromkeys(value))

    @property
    def search_spec(self) -> SearchSpec:
        return SearchSpec(query=self.query, filter=self.filter)


class AnalysisResult(_CamelModel):
    """Tally of one analysis kind over the fetched study set."""

    analysis_type: AnalysisType
    total_studies: int = Field(ge=0)
    results: dict[str, int] = {}


class TrendAnalysis(_CamelModel):
    """One AnalysisResult per requested kind, in request order."""

    analysis: list[AnalysisResult] = []


# ------------------------------------------------------------------
# Search / lookup tools
# ------------------------------------------------------------------


class SearchStudiesInput(SearchSpec):
    fields: list[str] | None = None
    sort: list[str] | None = None
    page_size: int = Field(SEARCH_DEFAULT_PAGE_SIZE, ge=1, le=SEARCH_MAX_PAGE_SIZE)
    page_token: str | None = None

    @property
    def search_spec(self) -> SearchSpec:
        return SearchSpec(query=self.query, filter=self.filter)


class GetStudyInput(BaseModel):
    nct_ids: list[str] = Field(min_length=1, max_length=MAX_NCT_IDS_PER_REQUEST)
    markup_format: Literal["markdown", "legacy"] = "markdown"
    fields: list[str] | None = None
    summary_only: bool = False

    @field_validator("nct_ids", mode="before")
    @classmethod
    def coerce_single_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("nct_ids")
    @classmethod
    def check_id_format(cls, value: list[str]) -> list[str]:
        bad = [v for v in value if not re.match(NCT_ID_PATTERN, v)]
        if bad:
            raise ValueError(
                f"Invalid NCT ID(s) {bad}: expected 'NCT' followed by digits"
            )
        return value


class StudySummary(_CamelModel):
    """Condensed view of a study returned when ``summary_only`` is set."""

    nct_id: str | None = None
    title: str | None = None
    brief_summary: str | None = None
    overall_status: str | None = None
    conditions: list[str] | None = None
    interventions: list[dict[str, str | None]] | None = None
    lead_sponsor: str | None = None


class StudyLookupError(_CamelModel):
    nct_id: str
    error: str


class GetStudyResult(_CamelModel):
    studies: list[Study | StudySummary] = []
    errors: list[StudyLookupError] | None = None


class CreateLinkInput(BaseModel):
    nct_id: str = Field(pattern=STRICT_NCT_ID_PATTERN)
