"""Logic for the ``clinicaltrials_search_studies`` tool."""

import logging

from clinicaltrials_mcp.data_sources.clinical_trials import ClinicalTrialsClient
from clinicaltrials_mcp.models.model_clinical_trials import (
    PagedStudies,
    SearchStudiesInput,
)
from clinicaltrials_mcp.utils.json_cleaner import clean_study

logger = logging.getLogger(__name__)


async def search_studies_logic(
    client: ClinicalTrialsClient, params: SearchStudiesInput
) -> PagedStudies:
    """Return one page of matching studies with browse data cleaned."""
    paged = await client.list_studies(
        params.search_spec,
        fields=params.fields,
        sort=params.sort,
        page_size=params.page_size,
        page_token=params.page_token,
        count_total=True,
    )
    logger.info("Successfully listed studies.")
    return paged.model_copy(update={"studies": [clean_study(s) for s in paged.studies]})
