from typing import Iterable, List, Tuple

from juriscloud.models import DocumentCategory

# Declared order is the order shown in the checklist
CATEGORIES: List[DocumentCategory] = list(DocumentCategory)

PRESENT = "Présent"
MISSING = "Manquant"


def _category(value) -> DocumentCategory:
    return value if isinstance(value, DocumentCategory) else DocumentCategory(value)


def missing_categories(existing: Iterable) -> List[DocumentCategory]:
    """Categories with no document yet, in declared order."""
    present = {_category(value) for value in existing if value is not None}
    return [category for category in CATEGORIES if category not in present]


def checklist(existing: Iterable) -> List[Tuple[DocumentCategory, bool]]:
    present = {_category(value) for value in existing if value is not None}
    return [(category, category in present) for category in CATEGORIES]


def missing_summary(existing: Iterable) -> str:
    missing = missing_categories(existing)
    if not missing:
        return ""
    names = ", ".join(category.value for category in missing)
    return (
        f"{len(missing)} document(s) manquant(s) : {names}. "
        "Vous pouvez les ajouter maintenant ou plus tard."
    )
