"""Trim redundant browse data from ClinicalTrials.gov study documents."""

import copy
from typing import Any

from clinicaltrials_mcp.models.model_clinical_trials import Study

_BROWSE_MODULES = ("conditionBrowseModule", "interventionBrowseModule")


def _drop_duplicate_ancestors(module: dict[str, Any]) -> None:
    """Remove ancestors already present as a browse leaf (by term or name)."""
    leaves = module.get("browseLeaves")
    ancestors = module.get("ancestors")
    if not leaves or ancestors is None:
        return
    leaf_terms = set()
    for leaf in leaves:
        if leaf.get("term"):
            leaf_terms.add(leaf["term"])
        if leaf.get("name"):
            leaf_terms.add(leaf["name"])
    module["ancestors"] = [a for a in ancestors if a.get("term") not in leaf_terms]


def _drop_low_relevance_leaves(module: dict[str, Any]) -> None:
    leaves = module.get("browseLeaves")
    if leaves is not None:
        module["browseLeaves"] = [
            leaf for leaf in leaves if leaf.get("relevance") != "LOW"
        ]


def clean_study(study: Study) -> Study:
    """Return a cleaned deep copy of study; the input is left untouched."""
    cleaned = copy.deepcopy(study)
    derived = cleaned.get("derivedSection") or {}
    for name in _BROWSE_MODULES:
        module = derived.get(name)
        if module:
            _drop_duplicate_ancestors(module)
            _drop_low_relevance_leaves(module)
    return cleaned
