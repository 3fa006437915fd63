"""Markdown rendering of tool results for human-facing output."""

from clinicaltrials_mcp.models.model_clinical_trials import PagedStudies, TrendAnalysis


def format_analysis_markdown(analysis: TrendAnalysis) -> str:
    """Render each analysis as a heading plus a count-descending table."""
    sections: list[str] = []
    for result in analysis.analysis:
        lines = [
            f"## {result.analysis_type.value}",
            "",
            f"Total studies: {result.total_studies}",
            "",
        ]
        if result.results:
            lines += ["| Category | Count |", "|---|---|"]
            ranked = sorted(result.results.items(), key=lambda kv: (-kv[1], kv[0]))
            lines += [f"| {label} | {count} |" for label, count in ranked]
        else:
            lines.append("_No data._")
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def format_search_markdown(paged: PagedStudies) -> str:
    """One bullet per study: NCT ID, status and brief title."""
    header = f"Showing {len(paged.studies)} studies"
    if paged.total_count is not None:
        header += f" of {paged.total_count}"
    lines = [header, ""]
    for study in paged.studies:
        proto = study.get("protocolSection") or {}
        ident = proto.get("identificationModule") or {}
        status = (proto.get("statusModule") or {}).get("overallStatus", "UNKNOWN")
        nct_id = ident.get("nctId", "?")
        title = ident.get("briefTitle", "")
        lines.append(f"- **{nct_id}** [{status}] {title}".rstrip())
    if paged.next_page_token:
        lines += ["", f"Next page token: `{paged.next_page_token}`"]
    return "\n".join(lines)
