"""Logic for the metadata and statistics pass-through tools."""

from typing import Any

from clinicaltrials_mcp.data_sources.clinical_trials import ClinicalTrialsClient


async def get_study_metadata_logic(
    client: ClinicalTrialsClient,
    include_indexed_only: bool = False,
    include_historic_only: bool = False,
) -> dict[str, Any]:
    fields = await client.get_study_metadata(
        include_indexed_only=include_indexed_only,
        include_historic_only=include_historic_only,
    )
    return {"fields": fields}


async def get_api_stats_logic(
    client: ClinicalTrialsClient,
    stat_type: str,
    fields: list[str] | None = None,
    types: list[str] | None = None,
) -> dict[str, Any]:
    stats = await client.get_api_stats(stat_type, fields=fields, types=types)
    return {"statType": stat_type, "stats": stats}
