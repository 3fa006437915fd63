"""Logic for the ``clinicaltrials_analyze_trends`` tool."""

import logging

from clinicaltrials_mcp.models.model_clinical_trials import (
    AnalyzeTrendsInput,
    TrendAnalysis,
)
from clinicaltrials_mcp.services.study_fetcher import StudyFetcher, StudySource
from clinicaltrials_mcp.services.trend_aggregator import assemble

logger = logging.getLogger(__name__)


async def analyze_trends_logic(
    source: StudySource, params: AnalyzeTrendsInput
) -> TrendAnalysis:
    """Fetch every study matching the search (up to the cap) and tally it.

    ``params`` is already validated, so an empty or unknown analysis kind
    never reaches the network.
    """
    kinds = params.analysis_type
    logger.debug("Running trend analysis %s", [k.value for k in kinds])

    studies = await StudyFetcher(source).fetch_all(params.search_spec)
    return assemble(studies, kinds)
