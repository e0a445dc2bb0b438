"""
Analysis pipeline for Safety Advisor.

This module chains classification and dataset lookups:
0. Accident types for the described work (required)
1. Industries and risk elements picked by the LLM
2. Risk element ids and the hazard items they lead to
3. Hazard items filtered for relevance by the LLM
4. Countermeasures and fully matching relationship rows
5. Random videos and cases for the identified accident types
"""
import random
from typing import List, Optional

from safety_advisor.schemas.entities import AccidentCase, AccidentType, AccidentVideoSet
from safety_advisor.schemas.responses import AnalysisDebug, AnalysisResult
from safety_advisor.services.classifier import (
    RISK_ELEMENTS, classify_accident_types, classify_industries,
    classify_risk_elements, filter_relevant_hazard_items
)
from safety_advisor.services.data_loader import DatasetLoader, dataset_loader, load_safety_data
from safety_advisor.services.dataset import Table
from safety_advisor.services.errors import LoadError
from safety_advisor.services.lookup import (
    countermeasures_by_conditions, countermeasures_by_conditions_with_industry,
    full_matching_data, hazard_item_ids_by_risk_ids, hazard_item_names,
    ids_by_names, industry_ids_by_names, risk_element_ids_by_names
)
from safety_advisor.services.sampler import sample_cases, sample_videos


async def _load_videos(loader: DatasetLoader) -> List[AccidentVideoSet]:
    try:
        return await loader.load_accident_videos()
    except LoadError as e:
        print(f"[analyze_work_safety] Accident videos unavailable: {str(e)}")
        return []


async def _load_cases(loader: DatasetLoader) -> List[AccidentCase]:
    try:
        return await loader.load_accident_cases()
    except LoadError as e:
        print(f"[analyze_work_safety] Accident cases unavailable: {str(e)}")
        return []


async def _analyze_risk_chain(
    result: AnalysisResult,
    debug: AnalysisDebug,
    loader: DatasetLoader,
    image_data: Optional[str],
    work_description: str,
    industry_description: str
) -> None:
    data = await load_safety_data(loader)

    industry_ids: List[int] = []
    if industry_description.strip():
        industries = await classify_industries(industry_description, data.names(Table.INDUSTRY))
        industry_ids = industry_ids_by_names(data, industries)
        result.selected_industries = industries
        debug.step0_llm_industries = industries
        debug.step0_industry_ids = industry_ids

    risks = await classify_risk_elements(image_data, work_description, RISK_ELEMENTS)
    risk_ids = risk_element_ids_by_names(data, risks)
    result.selected_risk_elements = risks
    debug.step1_llm_risks = risks
    debug.step2_risk_ids = risk_ids

    hazard_ids = hazard_item_ids_by_risk_ids(data, risk_ids)
    hazard_names = hazard_item_names(data, hazard_ids)
    debug.step3_all_hazard_item_ids = hazard_ids
    debug.step3_all_hazard_item_names = hazard_names

    relevant = await filter_relevant_hazard_items(image_data, work_description, risks, hazard_names)
    relevant_ids = ids_by_names(data, Table.HAZARD_ITEM, relevant)
    result.relevant_hazard_items = relevant
    debug.step4_filtered_hazard_items = relevant

    actions = []
    if industry_ids:
        actions = countermeasures_by_conditions_with_industry(data, risk_ids, relevant_ids, industry_ids)
        result.is_industry_matched = bool(actions)
    if not actions:
        actions = countermeasures_by_conditions(data, risk_ids, relevant_ids)
    action_ids = [action.id for action in actions]
    result.recommended_actions = actions
    debug.step5_action_ids = action_ids

    result.full_matching_data = full_matching_data(
        data, risk_ids, relevant_ids, action_ids,
        industry_ids if result.is_industry_matched else None
    )


async def analyze_work_safety(
    image_data: Optional[str],
    work_description: str,
    industry_description: str = "",
    analyze_risks: bool = True,
    enable_debug: bool = False,
    rng: Optional[random.Random] = None,
    loader: Optional[DatasetLoader] = None
) -> AnalysisResult:
    """
    Analyze a work description (and optional photo) end-to-end.

    Args:
        image_data: Photo of the work site as a data URL, or None
        work_description: Free-text description of the work
        industry_description: Free-text description of the industry, may be empty
        analyze_risks: Also run the risk element / countermeasure chain
        enable_debug: Attach intermediate step values to the result
        rng: Random source for video and case sampling
        loader: Dataset loader, the process-wide one by default

    Returns:
        AnalysisResult

    Raises:
        LoadError: If the accident type catalog or the dataset cannot be loaded
        ClassificationError: If an LLM call fails
        NoClassificationResult: If no accident type could be identified
    """
    loader = loader or dataset_loader
    print(f"[analyze_work_safety] Analyzing: '{work_description[:80]}' (image: {bool(image_data)})")

    catalog: List[AccidentType] = await loader.load_accident_types()
    accident_types = await classify_accident_types(image_data, work_description, catalog)

    result = AnalysisResult(accident_types=accident_types)
    debug = AnalysisDebug()

    if analyze_risks:
        await _analyze_risk_chain(result, debug, loader, image_data, work_description, industry_description)

    result.videos = sample_videos(accident_types, await _load_videos(loader), rng=rng)
    result.cases = sample_cases(accident_types, await _load_cases(loader), rng=rng)

    if enable_debug:
        result.debug = debug
    print(f"[analyze_work_safety] Done: {len(result.recommended_actions)} countermeasures, "
          f"{len(result.full_matching_data)} full matches, {len(result.videos)} videos, {len(result.cases)} cases")
    return result
