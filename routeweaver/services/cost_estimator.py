"""Trip cost estimates from the text model."""
import json
import logging
import re
from typing import Any, Dict, Optional, Sequence

from routeweaver.models.cost import CostEstimate
from routeweaver.services.text_generation import TextGenerator

logger = logging.getLogger(__name__)

UNKNOWN_TOTAL = "unknown"

_JSON_FENCE = re.compile(r"```json\s*\n([\s\S]*?)\n\s*```")
_PLAIN_FENCE = re.compile(r"```\s*\n([\s\S]*?)\n\s*```")

_TOTAL_KEYS = ("totalCost", "total_cost", "total_trip_cost", "totalTripCost", "total")


def build_cost_prompt(origin: str, destination: str, places: Sequence[str], num_people: int) -> str:
    places_text = ", ".join(places) if places else "no additional stops"
    return f"""Estimate the cost of a road trip by car from {origin} to {destination} for {num_people} people, visiting these places along the way: {places_text}.

Please provide a detailed breakdown including:
1. Fuel costs (estimate distance, average fuel consumption, and current fuel prices)
2. Accommodation costs (assuming mid-range hotels/accommodations)
3. Food and dining expenses (average per person per day)
4. Entrance fees for attractions (estimate based on typical costs)
5. Miscellaneous expenses (parking, tolls, etc.)

Format the response as a JSON object with these categories as properties and both the individual category costs and a "totalCost" property."""


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    JSON object from a model answer.

    Looks inside a ```json fence first, then any ``` fence, then tries the
    whole text. Returns None unless the result is a JSON object.
    """
    match = _JSON_FENCE.search(text) or _PLAIN_FENCE.search(text)
    candidate = match.group(1) if match else text.strip()
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _find_total(data: Dict[str, Any]) -> Optional[Any]:
    for key in _TOTAL_KEYS:
        if data.get(key) is not None:
            return data[key]
    # Nested shapes such as {"costs": {..., "total": ...}}
    for value in data.values():
        if isinstance(value, dict):
            total = _find_total(value)
            if total is not None:
                return total
    return None


def _format_total(total: Any) -> str:
    if isinstance(total, dict):
        for key in ("amount", "value", "cost"):
            if key in total:
                return _format_total(total[key])
        return json.dumps(total)
    return str(total)


async def estimate_cost(
    text_generator: TextGenerator,
    origin: str,
    destination: str,
    places: Sequence[str],
    num_people: int,
) -> CostEstimate:
    """Best-effort cost breakdown. Never raises."""
    result = await text_generator.generate(build_cost_prompt(origin, destination, places, num_people))
    if not result.ok:
        logger.warning(f"Cost estimate unavailable ({result.error.value}): {result.detail}")
        return CostEstimate(
            total_cost=UNKNOWN_TOTAL,
            error="Failed to generate cost estimate",
        )

    data = extract_json_object(result.value)
    if data is None:
        logger.warning("Cost estimate response had no JSON object")
        return CostEstimate(
            total_cost=UNKNOWN_TOTAL,
            details=result.value,
            error="unstructured response",
        )

    total = _find_total(data)
    return CostEstimate(
        total_cost=_format_total(total) if total is not None else UNKNOWN_TOTAL,
        breakdown=data,
    )
