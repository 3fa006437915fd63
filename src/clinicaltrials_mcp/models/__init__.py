"""Data models for clinicaltrials-mcp."""

from clinicaltrials_mcp.models.model_clinical_trials import (
    AnalysisResult,
    AnalysisType,
    PagedStudies,
    SearchSpec,
    TrendAnalysis,
)

__all__ = ["AnalysisResult", "AnalysisType", "PagedStudies", "SearchSpec", "TrendAnalysis"]
