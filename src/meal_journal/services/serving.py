"""Serving-size normalization for model-detected food items."""

import math

from meal_journal.domain.nutrition import MACRO_FIELDS, parse_quantity, round_half_up


class _MalformedAnalysis(Exception):
    pass


def normalize_serving_sizes(analysis: dict[str, object]) -> dict[str, object]:
    """Rescale multi-unit items ("3 cookies") to one unit and recompute totals.

    Items whose quantity has a leading number N > 1 get ``servingMultiplier = N``,
    a ``"1 <unit>"`` label and every macro divided by N. Other items are left as
    they are. Malformed input is returned unchanged.
    """
    if not isinstance(analysis, dict):
        return analysis
    foods = analysis.get("foods")
    if not isinstance(foods, list):
        return analysis
    try:
        normalized = [_normalize_food(food) for food in foods]
        totals = _recompute_totals(normalized)
    except _MalformedAnalysis:
        return analysis
    return {**analysis, "foods": normalized, **totals}


def _normalize_food(food: object) -> dict[str, object]:
    if not isinstance(food, dict):
        raise _MalformedAnalysis
    for name in MACRO_FIELDS:
        if food.get(name) is not None and not _is_number(food[name]):
            raise _MalformedAnalysis
    quantity = food.get("estimated_quantity")
    if not quantity:
        return food
    if not isinstance(quantity, str):
        raise _MalformedAnalysis
    parsed = parse_quantity(quantity)
    if parsed is None:
        return food
    number, unit = parsed
    if number <= 1:
        return food
    normalized = {**food, "estimated_quantity": f"1 {unit}"}
    for name in MACRO_FIELDS:
        if food.get(name) is not None:
            normalized[name] = round_half_up(food[name] / number, 2)
    normalized["servingMultiplier"] = number
    return normalized


def _recompute_totals(foods: list[dict[str, object]]) -> dict[str, float]:
    totals = dict.fromkeys(MACRO_FIELDS, 0.0)
    for food in foods:
        multiplier = food.get("servingMultiplier") or 1
        if not _is_number(multiplier):
            raise _MalformedAnalysis
        for name in MACRO_FIELDS:
            totals[name] += (food.get(name) or 0) * multiplier
    return {f"total_{name}": round_half_up(value, 2) for name, value in totals.items()}


def _is_number(value: object) -> bool:
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )
