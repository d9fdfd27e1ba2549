"""Editable ingredient list for adjusting a meal before it is saved.

The board is immutable: every operation returns a new board. Displayed macros
are always derived from the stored unit values, and meal totals are always
derived from the displayed macros, so neither can drift.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from uuid import uuid4

from meal_journal.domain.analysis import Confidence, FoodItem, MacroValues, MealAnalysis
from meal_journal.domain.nutrition import Macros, parse_quantity, round_half_up

MIN_SERVING_MULTIPLIER = 0.1
MAX_SERVING_MULTIPLIER = 10.0


@dataclass(frozen=True)
class EditableIngredient:
    """One ingredient in a draft meal."""

    id: str
    name: str
    quantity_text: str | None
    serving_multiplier: float
    original: Macros
    current: Macros
    confidence: Confidence


@dataclass(frozen=True)
class IngredientBoard:
    """Ordered ingredients plus the reanalysis state of a draft."""

    items: tuple[EditableIngredient, ...] = ()
    needs_reanalysis: bool = False
    pending_edit: str = ""

    def get(self, item_id: str) -> EditableIngredient | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


def _new_id() -> str:
    return uuid4().hex[:12]


def board_from_analysis(
    analysis: MealAnalysis, new_id: Callable[[], str] = _new_id
) -> IngredientBoard:
    """Build a fresh board from an analysis, one ingredient per food."""
    items = []
    for food in analysis.foods:
        multiplier = food.serving_multiplier or 1.0
        original = (
            food.unit_macros.to_macros() if food.unit_macros else food.macros
        )
        items.append(
            EditableIngredient(
                id=new_id(),
                name=food.name,
                quantity_text=food.estimated_quantity,
                serving_multiplier=multiplier,
                original=original,
                current=original.scaled(multiplier),
                confidence=food.confidence,
            )
        )
    return IngredientBoard(items=tuple(items))


def update_serving(
    board: IngredientBoard, item_id: str, multiplier: float
) -> IngredientBoard:
    """Rescale one ingredient from its unit values."""
    new_multiplier = max(MIN_SERVING_MULTIPLIER, multiplier)
    items = tuple(
        replace(
            item,
            serving_multiplier=new_multiplier,
            current=_displayed_macros(item.original, new_multiplier),
        )
        if item.id == item_id
        else item
        for item in board.items
    )
    return replace(board, items=items)


def remove_item(board: IngredientBoard, item_id: str) -> IngredientBoard:
    """Drop one ingredient."""
    items = tuple(item for item in board.items if item.id != item_id)
    return replace(board, items=items)


def add_item(
    board: IngredientBoard,
    name: str,
    quantity_text: str | None,
    macros: Macros,
    new_id: Callable[[], str] = _new_id,
) -> IngredientBoard:
    """Append an ingredient whose macros the user entered directly."""
    item = EditableIngredient(
        id=new_id(),
        name=name,
        quantity_text=quantity_text,
        serving_multiplier=1.0,
        original=macros,
        current=macros,
        confidence=Confidence.USER_ADDED,
    )
    return replace(board, items=(*board.items, item))


def recompute_totals(board: IngredientBoard) -> Macros:
    """Sum the displayed macros across all ingredients."""
    totals = Macros()
    for item in board.items:
        totals = totals.plus(item.current)
    return totals


def record_ingredient_edit(board: IngredientBoard, text: str) -> IngredientBoard:
    """Store a free-text correction; only the model can turn it into macros."""
    return replace(board, pending_edit=text, needs_reanalysis=True)


def discard_ingredient_edit(board: IngredientBoard) -> IngredientBoard:
    return replace(board, pending_edit="", needs_reanalysis=False)


def clamp_serving_input(value: float) -> float:
    """Clamp user-entered multipliers to the range offered by the serving control."""
    return min(MAX_SERVING_MULTIPLIER, max(MIN_SERVING_MULTIPLIER, value))


def format_serving_display(quantity_text: str | None, multiplier: float) -> str:
    """Describe a quantity and its multiplier for display."""
    if not quantity_text:
        if multiplier == 1:
            return "Unknown quantity"
        return f"Unknown quantity × {multiplier:.1f}"
    if multiplier == 1:
        return quantity_text
    parsed = parse_quantity(quantity_text)
    if parsed:
        number, unit = parsed
        return (
            f"{quantity_text} × {multiplier:.1f} = {number * multiplier:.1f} {unit}"
        )
    return f"{quantity_text} × {multiplier:.1f}"


def reanalysis_notes(board: IngredientBoard) -> str:
    """Combine the pending edit with any serving adjustments for the model."""
    notes = board.pending_edit.strip()
    adjustments = [
        f"- {item.name}: adjusted from {item.quantity_text} to "
        f"{format_serving_display(item.quantity_text, item.serving_multiplier)} "
        f"({item.serving_multiplier:.1f}x serving)"
        for item in board.items
        if item.serving_multiplier != 1
    ]
    if adjustments:
        notes += "\n\nServing size adjustments:\n" + "\n".join(adjustments)
    return notes


def board_to_analysis(board: IngredientBoard, base: MealAnalysis) -> MealAnalysis:
    """Build the analysis to persist from the edited ingredients."""
    foods = [
        FoodItem(
            name=item.name,
            estimated_quantity=item.quantity_text,
            confidence=item.confidence,
            serving_multiplier=item.serving_multiplier,
            unit_macros=MacroValues(**item.original.as_dict()),
            **item.current.as_dict(),
        )
        for item in board.items
    ]
    return base.model_copy(update={"foods": foods}).with_totals(
        recompute_totals(board)
    )


def board_to_dict(board: IngredientBoard) -> dict[str, object]:
    """JSON-compatible form of a board for draft storage."""
    return {
        "items": [
            {
                "id": item.id,
                "name": item.name,
                "quantity_text": item.quantity_text,
                "serving_multiplier": item.serving_multiplier,
                "original": item.original.as_dict(),
                "current": item.current.as_dict(),
                "confidence": item.confidence.value,
            }
            for item in board.items
        ],
        "needs_reanalysis": board.needs_reanalysis,
        "pending_edit": board.pending_edit,
    }


def board_from_dict(data: dict[str, object]) -> IngredientBoard:
    """Rebuild a board stored with board_to_dict."""
    items = tuple(
        EditableIngredient(
            id=item["id"],
            name=item["name"],
            quantity_text=item.get("quantity_text"),
            serving_multiplier=float(item["serving_multiplier"]),
            original=Macros(**item["original"]),
            current=Macros(**item["current"]),
            confidence=Confidence(item["confidence"]),
        )
        for item in data.get("items", [])
    )
    return IngredientBoard(
        items=items,
        needs_reanalysis=bool(data.get("needs_reanalysis", False)),
        pending_edit=str(data.get("pending_edit", "")),
    )


def _displayed_macros(original: Macros, multiplier: float) -> Macros:
    return Macros(
        calories=round_half_up(original.calories * multiplier),
        protein=round_half_up(original.protein * multiplier, 1),
        carbs=round_half_up(original.carbs * multiplier, 1),
        fat=round_half_up(original.fat * multiplier, 1),
        fiber=round_half_up(original.fiber * multiplier, 1),
        sugar=round_half_up(original.sugar * multiplier, 1),
    )
