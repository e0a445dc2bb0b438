"""
Lookup functions over the safety dataset snapshot.

All functions are pure: they never mutate the snapshot or their inputs.
Membership conditions are conjunctive, so an empty id collection on any
condition matches nothing. Unknown names and dangling foreign keys are
skipped rather than raised.
"""
from typing import Iterable, List, Optional, Sequence

from safety_advisor.schemas.entities import FullAnalysisResult, MasterItem
from safety_advisor.services.dataset import SafetyDataset, Table


def ids_by_names(data: SafetyDataset, table: Table, names: Sequence[str]) -> List[int]:
    """
    Resolve names to ids by exact match.

    Unknown names are skipped; input order and duplicates are kept.
    """
    ids = []
    for name in names:
        item_id = data.id_for_name(table, name)
        if item_id is not None:
            ids.append(item_id)
    return ids


def names_by_ids(data: SafetyDataset, table: Table, ids: Iterable[int]) -> List[str]:
    """Resolve ids to names; unknown ids are dropped."""
    names = []
    for item_id in ids:
        item = data.get(table, item_id)
        if item is not None:
            names.append(item.name)
    return names


def risk_element_ids_by_names(data: SafetyDataset, names: Sequence[str]) -> List[int]:
    return ids_by_names(data, Table.RISK_ELEMENT, names)


def industry_ids_by_names(data: SafetyDataset, names: Sequence[str]) -> List[int]:
    return ids_by_names(data, Table.INDUSTRY, names)


def hazard_item_names(data: SafetyDataset, ids: Iterable[int]) -> List[str]:
    return names_by_ids(data, Table.HAZARD_ITEM, ids)


def hazard_item_ids_by_risk_ids(data: SafetyDataset, risk_ids: Iterable[int]) -> List[int]:
    """Unique hazard item ids linked to any of the risk elements, first seen first."""
    hazard_ids = {}
    for row in data.rows_for_risk_ids(risk_ids):
        hazard_ids.setdefault(row.hazard_item_id, None)
    return list(hazard_ids)


def _resolve_countermeasures(data: SafetyDataset, countermeasure_ids: Iterable[int]) -> List[MasterItem]:
    items = []
    for countermeasure_id in countermeasure_ids:
        item = data.get(Table.COUNTERMEASURE, countermeasure_id)
        if item is not None:
            items.append(item)
    return items


def countermeasures_by_conditions(
    data: SafetyDataset,
    risk_ids: Iterable[int],
    hazard_item_ids: Iterable[int]
) -> List[MasterItem]:
    """
    Countermeasures of rows matching both the risk element and the hazard item.

    Args:
        data: Dataset snapshot
        risk_ids: Accepted risk element ids
        hazard_item_ids: Accepted hazard item ids

    Returns:
        Unique countermeasures in the order their first matching row appears
    """
    hazard_set = set(hazard_item_ids)
    if not hazard_set:
        return []
    countermeasure_ids = {}
    for row in data.rows_for_risk_ids(risk_ids):
        if row.hazard_item_id in hazard_set:
            countermeasure_ids.setdefault(row.countermeasure_id, None)
    return _resolve_countermeasures(data, countermeasure_ids)


def countermeasures_by_conditions_with_industry(
    data: SafetyDataset,
    risk_ids: Iterable[int],
    hazard_item_ids: Iterable[int],
    industry_ids: Iterable[int]
) -> List[MasterItem]:
    """Same as countermeasures_by_conditions, additionally requiring the industry."""
    hazard_set = set(hazard_item_ids)
    industry_set = set(industry_ids)
    if not hazard_set or not industry_set:
        return []
    countermeasure_ids = {}
    for row in data.rows_for_risk_ids(risk_ids):
        if row.hazard_item_id in hazard_set and row.industry_id in industry_set:
            countermeasure_ids.setdefault(row.countermeasure_id, None)
    return _resolve_countermeasures(data, countermeasure_ids)


def full_matching_data(
    data: SafetyDataset,
    risk_ids: Iterable[int],
    hazard_item_ids: Iterable[int],
    action_ids: Iterable[int],
    industry_ids: Optional[Iterable[int]] = None
) -> List[FullAnalysisResult]:
    """
    Fully resolved rows matching risk element, hazard item and countermeasure.

    When industry_ids is given (even empty) the industry must match as well.
    Rows with any dangling foreign key are skipped. One result per matching
    row, in relationship order; identical rows are not collapsed.
    """
    hazard_set = set(hazard_item_ids)
    action_set = set(action_ids)
    industry_set = set(industry_ids) if industry_ids is not None else None
    if not hazard_set or not action_set or industry_set == set():
        return []

    results = []
    for row in data.rows_for_risk_ids(risk_ids):
        if row.hazard_item_id not in hazard_set or row.countermeasure_id not in action_set:
            continue
        if industry_set is not None and row.industry_id not in industry_set:
            continue
        resolved = data.resolve(row)
        if resolved is None:
            continue
        results.append(FullAnalysisResult(
            risk_element=resolved[Table.RISK_ELEMENT],
            hazard_item=resolved[Table.HAZARD_ITEM],
            countermeasure=resolved[Table.COUNTERMEASURE],
            industry=resolved[Table.INDUSTRY],
            work_process=resolved[Table.WORK_PROCESS],
            risk_factor=resolved[Table.RISK_FACTOR]
        ))
    return results
