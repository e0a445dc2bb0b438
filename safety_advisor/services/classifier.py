"""
LLM classification for Safety Advisor.

This module asks an LLM provider to pick items from a closed vocabulary:
1. Accident types from the accident type catalog
2. Risk elements from the 38-item risk element list
3. Industries from the industry table
4. Hazard items relevant to the described work

The LLM is untrusted with respect to the vocabulary: every answer is
post-filtered and anything unknown is dropped.
"""
import json
import os
import re
from typing import Any, Dict, List, Optional, Sequence

import anthropic
import httpx
from openai import AsyncOpenAI
from pydantic import ValidationError

from safety_advisor.schemas.classification import (
    AccidentTypeSelection, HazardItemSelection, IndustrySelection, RiskElementSelection
)
from safety_advisor.schemas.entities import AccidentType
from safety_advisor.services.config import (
    ANTHROPIC_MODEL, DEEPSEEK_MODEL, LLM_TEMPERATURE, LLM_TIMEOUT, OPENAI_MODEL, load_yaml_config
)
from safety_advisor.services.errors import ClassificationError, NoClassificationResult

RISK_ELEMENTS: List[str] = load_yaml_config('risk_elements.yaml', 'risk_elements')
assert isinstance(RISK_ELEMENTS, list) and RISK_ELEMENTS, "risk_elements.yaml must list the risk elements"

DEEPSEEK_URL = "https://api.deepseek.com/v1/chat/completions"

MAX_ACCIDENT_TYPES = 3
MAX_RISK_ELEMENTS = 2
MAX_INDUSTRIES = 2

EXPERT_ROLE = "당신은 산업안전 전문가입니다."
JSON_ONLY = "응답은 반드시 JSON 형식으로만 제공하세요."
NO_RESULT_MSG = "산업재해 유형을 식별할 수 없습니다. 작업 내용을 다시 확인해주세요."

DATA_URL_PATTERN = re.compile(r"^data:(?P<media_type>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)


def get_llm_provider() -> str:
    provider = os.getenv("LLM_PROVIDER")
    if provider:
        return provider.lower()
    if os.getenv("OPENAI_API_KEY", "").strip():
        return "openai"
    if os.getenv("ANTHROPIC_API_KEY", "").strip():
        return "anthropic"
    if os.getenv("DEEPSEEK_API_KEY", "").strip():
        return "deepseek"
    raise ClassificationError("No LLM provider configured and no API key found.")


def filter_to_vocabulary(candidates: Sequence[str], vocabulary: Sequence[str],
                         limit: Optional[int] = None) -> List[str]:
    """
    Keep only candidates that are exact members of the vocabulary.

    Order is kept, repeats are collapsed, and the result is cut to limit.
    """
    allowed = set(vocabulary)
    valid = []
    for candidate in candidates:
        if candidate in allowed and candidate not in valid:
            valid.append(candidate)
    return valid[:limit] if limit is not None else valid


def filter_accident_types(selection: AccidentTypeSelection, catalog: Sequence[AccidentType],
                          limit: int = MAX_ACCIDENT_TYPES) -> List[AccidentType]:
    """Map LLM choices to catalog entries by id, falling back to the exact name."""
    by_id = {accident_type.id: accident_type for accident_type in catalog}
    by_name = {accident_type.name: accident_type for accident_type in catalog}
    valid: List[AccidentType] = []
    for choice in selection.accident_types:
        match = by_id.get(choice.id) if choice.id is not None else None
        if match is None and choice.name is not None:
            match = by_name.get(choice.name)
        if match is not None and match not in valid:
            valid.append(match)
    return valid[:limit]


def parse_json_answer(content: Optional[str]) -> Dict[str, Any]:
    """Decode the JSON object of an LLM answer, tolerating markdown fences."""
    if content is None or not content.strip():
        raise ClassificationError("LLM returned an empty response")
    text = content.strip().replace("```json", "").replace("```", "").strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        # Answers sometimes wrap the object in prose
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            raise ClassificationError(f"LLM response is not JSON: {text[:200]}")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ClassificationError(f"LLM response is not valid JSON: {str(e)}") from e
    if not isinstance(parsed, dict):
        raise ClassificationError("LLM response must be a JSON object")
    return parsed


def _openai_user_content(text: str, image_data: Optional[str]):
    if not image_data:
        return text
    return [
        {"type": "text", "text": text},
        {"type": "image_url", "image_url": {"url": image_data}}
    ]


def _anthropic_user_content(text: str, image_data: Optional[str]):
    if not image_data:
        return text
    match = DATA_URL_PATTERN.match(image_data)
    if match:
        source = {"type": "base64", "media_type": match.group("media_type"), "data": match.group("data")}
    else:
        source = {"type": "url", "url": image_data}
    return [
        {"type": "image", "source": source},
        {"type": "text", "text": text}
    ]


async def _llm_complete(provider: str, system_prompt: str, user_text: str,
                        image_data: Optional[str] = None) -> Optional[str]:
    """Send one classification prompt to the provider and return the raw answer text."""
    if provider == "openai":
        async with AsyncOpenAI(
            api_key=os.getenv("OPENAI_API_KEY"),
            http_client=httpx.AsyncClient(timeout=LLM_TIMEOUT)
        ) as client:
            response = await client.chat.completions.create(
                model=OPENAI_MODEL,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": _openai_user_content(user_text, image_data)}
                ],
                response_format={"type": "json_object"},
                temperature=LLM_TEMPERATURE
            )
        return response.choices[0].message.content if response.choices else None

    elif provider == "anthropic":
        async with anthropic.AsyncAnthropic(
            api_key=os.getenv("ANTHROPIC_API_KEY"),
            timeout=LLM_TIMEOUT
        ) as client:
            response = await client.messages.create(
                model=ANTHROPIC_MODEL,
                max_tokens=1000,
                system=system_prompt,
                messages=[{"role": "user", "content": _anthropic_user_content(user_text, image_data)}],
                temperature=LLM_TEMPERATURE
            )
        return response.content[0].text if response.content else None

    elif provider == "deepseek":
        if image_data:
            print("[classifier] DeepSeek does not accept images, classifying from text only")
        headers = {
            "Authorization": f"Bearer {os.getenv('DEEPSEEK_API_KEY')}",
            "Content-Type": "application/json"
        }
        data = {
            "model": DEEPSEEK_MODEL,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_text}
            ],
            "response_format": {"type": "json_object"},
            "temperature": LLM_TEMPERATURE
        }
        async with httpx.AsyncClient(timeout=LLM_TIMEOUT) as client:
            response = await client.post(DEEPSEEK_URL, headers=headers, json=data)
            response.raise_for_status()
            result = response.json()
        return result["choices"][0]["message"]["content"] if result.get("choices") else None

    else:
        raise ClassificationError(f"Unknown provider: {provider}")


async def request_classification(system_prompt: str, user_text: str,
                                 image_data: Optional[str] = None) -> Dict[str, Any]:
    """
    Run one classification call and return the decoded JSON answer.

    Raises:
        ClassificationError: If the provider call fails or the answer is not a JSON object
    """
    provider = get_llm_provider()
    try:
        content = await _llm_complete(provider, system_prompt, user_text, image_data)
    except ClassificationError:
        raise
    except Exception as e:
        print(f"[classifier] Error with provider {provider}: {type(e).__name__}: {str(e)}")
        raise ClassificationError(f"{provider} error: {str(e)}") from e
    return parse_json_answer(content)


def _validate_answer(schema, answer: Dict[str, Any]):
    try:
        return schema.model_validate(answer)
    except ValidationError as e:
        raise ClassificationError(f"Unexpected LLM answer shape: {e.errors()[0]['msg']}") from e


def _describe_work(work_description: str, image_data: Optional[str], request: str) -> str:
    subject = "다음 작업 현장 사진과 작업 내용을" if image_data else "다음 작업 내용을"
    return f"{subject} 분석하여 {request}\n\n작업 내용: {work_description}"


async def classify_accident_types(
    image_data: Optional[str],
    work_description: str,
    catalog: Sequence[AccidentType],
    required: bool = True
) -> List[AccidentType]:
    """
    Identify up to three likely accident types, most likely first.

    Raises:
        ClassificationError: If the LLM call fails
        NoClassificationResult: If required and no answer matches the catalog
    """
    types_str = "\n".join(
        f"{t.id}. {t.name}: {t.description} (예: {', '.join(t.examples)})" for t in catalog
    )
    system_prompt = f"""{EXPERT_ROLE} 작업 현장의 사진 또는 작업 내용 설명을 분석하여 발생 가능한 산업재해 유형을 식별합니다.

다음 {len(catalog)}개 산업재해 유형 중에서 해당 작업과 관련된 유형을 최대 {MAX_ACCIDENT_TYPES}개 선택하세요:

{types_str}

**중요**:
- 반드시 위의 {len(catalog)}개 유형 중에서만 선택하세요.
- 발생 가능성이 높은 순서대로 최대 {MAX_ACCIDENT_TYPES}개를 선택하세요.
- 각 유형의 ID와 이름을 정확히 사용하세요.
- {JSON_ONLY}

JSON 응답 형식:
{{"accidentTypes": [{{"id": 1, "name": "유형 이름"}}]}}"""

    user_text = _describe_work(
        work_description, image_data,
        f"발생 가능한 산업재해 유형을 최대 {MAX_ACCIDENT_TYPES}개 선택해주세요."
    )
    answer = await request_classification(system_prompt, user_text, image_data)
    selection = _validate_answer(AccidentTypeSelection, answer)
    valid = filter_accident_types(selection, catalog)
    print(f"[classify_accident_types] Identified: {[t.name for t in valid]}")
    if required and not valid:
        raise NoClassificationResult(NO_RESULT_MSG)
    return valid


async def classify_risk_elements(
    image_data: Optional[str],
    work_description: str,
    vocabulary: Sequence[str] = RISK_ELEMENTS,
    required: bool = False
) -> List[str]:
    """Pick up to two risk elements that look most dangerous for the described work."""
    system_prompt = f"""{EXPERT_ROLE} 작업 현장의 사진 또는 작업 내용 설명을 분석하여 가장 위험해 보이는 요소를 식별합니다.

다음 {len(vocabulary)}개 위험요소 중에서 가장 위험해 보이는 요소를 최대 {MAX_RISK_ELEMENTS}개 선택하세요:
{'|'.join(vocabulary)}

**중요**: 반드시 위의 {len(vocabulary)}개 항목 중에서만 선택하고, 정확한 이름을 사용하세요.
{JSON_ONLY}

응답 형식:
{{"riskElements": ["위험요소1", "위험요소2"]}}"""

    user_text = _describe_work(
        work_description, image_data,
        f"가장 위험해 보이는 요소를 최대 {MAX_RISK_ELEMENTS}개 선택해주세요."
    )
    answer = await request_classification(system_prompt, user_text, image_data)
    selection = _validate_answer(RiskElementSelection, answer)
    valid = filter_to_vocabulary(selection.risk_elements, vocabulary, MAX_RISK_ELEMENTS)
    print(f"[classify_risk_elements] Selected: {valid}")
    if required and not valid:
        raise NoClassificationResult("위험요소를 식별할 수 없습니다. 작업 내용을 다시 확인해주세요.")
    return valid


async def classify_industries(
    industry_description: str,
    industries: Sequence[str],
    required: bool = False
) -> List[str]:
    """Pick up to two standard industries closest to a free-text description."""
    system_prompt = f"""당신은 산업 분류 전문가입니다. 사용자가 자연어로 설명하는 업종을 분석하여 가장 유사한 표준 업종을 찾습니다.

다음 {len(industries)}개 업종 목록에서 가장 유사한 업종을 최대 {MAX_INDUSTRIES}개 선택하세요:
{chr(10).join(industries)}

**중요**:
- 반드시 위의 업종 중에서만 선택하고, 정확한 이름을 사용하세요.
- 예시: "식당에서 서빙한다" → "음식점업"
- {JSON_ONLY}

응답 형식:
{{"industries": ["업종1", "업종2"]}}"""

    user_text = f"다음 설명에 가장 유사한 업종을 최대 {MAX_INDUSTRIES}개 선택해주세요.\n\n업종 설명: {industry_description}"
    answer = await request_classification(system_prompt, user_text)
    selection = _validate_answer(IndustrySelection, answer)
    valid = filter_to_vocabulary(selection.industries, industries, MAX_INDUSTRIES)
    print(f"[classify_industries] Selected: {valid}")
    if required and not valid:
        raise NoClassificationResult("업종을 식별할 수 없습니다. 업종 설명을 다시 확인해주세요.")
    return valid


async def filter_relevant_hazard_items(
    image_data: Optional[str],
    work_description: str,
    selected_risks: Sequence[str],
    hazard_items: Sequence[str]
) -> List[str]:
    """Keep only the hazard items the LLM judges relevant to the described work."""
    if not hazard_items:
        return []
    system_prompt = f"""{EXPERT_ROLE} 작업 현장의 사진 또는 작업 내용 설명과 관련이 있는 유해위험요인항목만 선택합니다.

**중요**:
- 이미 식별된 위험요소: {', '.join(selected_risks)}
- 제공되는 유해위험요인항목들은 위의 위험요소와 실제로 연결되어 있는 항목들입니다.
- 작업 현장 사진이나 작업 내용과 직접적으로 관련이 있는 항목들만 선택하고, 관련성이 낮거나 불분명한 항목은 제외하세요.
{JSON_ONLY}

응답 형식:
{{"relevantItems": ["항목1", "항목2"]}}"""

    items_str = "\n- ".join(hazard_items)
    user_text = _describe_work(
        work_description, image_data,
        f"아래 유해위험요인항목 중에서 관련이 있는 것들을 모두 선택해주세요.\n\n유해위험요인항목:\n- {items_str}"
    )
    answer = await request_classification(system_prompt, user_text, image_data)
    selection = _validate_answer(HazardItemSelection, answer)
    valid = filter_to_vocabulary(selection.relevant_items, hazard_items)
    print(f"[filter_relevant_hazard_items] Kept {len(valid)} of {len(hazard_items)} items")
    return valid
