"""
Categorical tallies over a fetched study set.

Each analysis kind has its own extractor that reads one field path from the
raw study document and returns the labels found there. Where a field is
missing the kinds deliberately differ:

  countByStatus       one label per study, "Unknown" when absent
  countBySponsorType  one label per study, "Unknown" when absent
  countByPhase        one label per listed phase, one "Unknown" when none
  countByCountry      one label per location entry, nothing when none

Labels are never de-duplicated within a study.
"""

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from clinicaltrials_mcp.constants import UNKNOWN_LABEL
from clinicaltrials_mcp.models.model_clinical_trials import (
    AnalysisResult,
    AnalysisType,
    Study,
    TrendAnalysis,
)


def _module(study: Study, name: str) -> dict[str, Any]:
    return (study.get("protocolSection") or {}).get(name) or {}


# ------------------------------------------------------------------
# Extractors: None / [] means the field is missing
# ------------------------------------------------------------------


def extract_status(study: Study) -> str | None:
    return _module(study, "statusModule").get("overallStatus")


def extract_sponsor_class(study: Study) -> str | None:
    lead = _module(study, "sponsorCollaboratorsModule").get("leadSponsor") or {}
    return lead.get("class")


def extract_countries(study: Study) -> list[str]:
    """One entry per location; a location without a country counts as Unknown."""
    locations = _module(study, "contactsLocationsModule").get("locations") or []
    return [loc.get("country") or UNKNOWN_LABEL for loc in locations]


def extract_phases(study: Study) -> list[str]:
    phases = _module(study, "designModule").get("phases") or []
    return [p or UNKNOWN_LABEL for p in phases]


# ------------------------------------------------------------------
# Per-kind labelling policy
# ------------------------------------------------------------------

_LABELERS: dict[AnalysisType, Callable[[Study], list[str]]] = {
    AnalysisType.COUNT_BY_STATUS: lambda s: [extract_status(s) or UNKNOWN_LABEL],
    AnalysisType.COUNT_BY_COUNTRY: extract_countries,
    AnalysisType.COUNT_BY_SPONSOR_TYPE: lambda s: [
        extract_sponsor_class(s) or UNKNOWN_LABEL
    ],
    AnalysisType.COUNT_BY_PHASE: lambda s: extract_phases(s) or [UNKNOWN_LABEL],
}


def labels_for(study: Study, kind: AnalysisType) -> list[str]:
    """Category labels a single study contributes to the given tally."""
    return _LABELERS[kind](study)


def tally(studies: Iterable[Study], kind: AnalysisType) -> dict[str, int]:
    """Count label occurrences for one analysis kind."""
    counts: dict[str, int] = {}
    for study in studies:
        for label in labels_for(study, kind):
            counts[label] = counts.get(label, 0) + 1
    return counts


def assemble(studies: Sequence[Study], kinds: Sequence[AnalysisType]) -> TrendAnalysis:
    """One AnalysisResult per kind, in the order the kinds were requested."""
    return TrendAnalysis(
        analysis=[
            AnalysisResult(
                analysis_type=kind,
                total_studies=len(studies),
                results=tally(studies, kind),
            )
            for kind in kinds
        ]
    )
