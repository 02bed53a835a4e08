"""Rule-based suggestion chips used when the model supplies none."""

BOWL_CHIPS = ["Small Bowl", "Medium Bowl", "Large Bowl"]
GLASS_CHIPS = ["Half Glass", "Full Glass", "Mug"]
EGG_COUNT_CHIPS = ["1 egg", "2 eggs", "3 eggs"]
COUNT_CHIPS = ["1", "2", "3", "4"]
SIZE_CHIPS = ["Small", "Medium", "Large"]
LOGGED_CHIPS = ["Add Water", "View History", "Check Goal"]
GREETING_CHIPS = ["Log Breakfast", "Log Lunch", "Log Snack"]
# Never guess food attributes (bread type, etc.) the text does not mention.
DEFAULT_CHIPS = ["Log Meal", "View History", "My Goal"]


def fallback_suggestions(text: str) -> list[str]:
    """Return suggestion chips inferred from the assistant text.

    Rules are checked in order and the first match wins. The result is a fresh
    list so callers may mutate it.
    """
    lowered = text.lower()

    if _mentions(lowered, "bowl", "plate"):
        return list(BOWL_CHIPS)
    if _mentions(lowered, "glass", "cup"):
        return list(GLASS_CHIPS)
    if _mentions(lowered, "how many", "number of"):
        if _mentions(lowered, "egg"):
            return list(EGG_COUNT_CHIPS)
        return list(COUNT_CHIPS)
    if _mentions(lowered, "size", "portion", "how much"):
        if _mentions(lowered, "sambhar", "curry", "dal"):
            return list(BOWL_CHIPS)
        return list(SIZE_CHIPS)
    if _mentions(lowered, "logged", "added", "saved"):
        return list(LOGGED_CHIPS)
    if _mentions(lowered, "hello", "hi", "welcome"):
        return list(GREETING_CHIPS)
    return list(DEFAULT_CHIPS)


def _mentions(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)
