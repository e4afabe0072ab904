"""Keyword-based normalization of test categories and subcategories.

Free-text categories from imported files ("lab", "Imaging", "Cardio workup") are
folded onto the catalog's canonical names. Values that match no rule are returned
unchanged (trimmed), so already-canonical input is a fixed point.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING, Final


class Category(StrEnum):
    LABORATORY = "Laboratory Tests"
    IMAGING = "Imaging Studies"
    CARDIOLOGY = "Cardiology"
    NEUROLOGY = "Neurology"
    PULMONARY = "Pulmonary"
    GASTROENTEROLOGY = "Gastroenterology"


class LaboratorySubCategory(StrEnum):
    HEMATOLOGY = "Hematology"
    CHEMISTRY = "Clinical Chemistry"
    MICROBIOLOGY = "Microbiology"
    IMMUNOLOGY = "Immunology/Serology"
    MOLECULAR = "Molecular Diagnostics"
    TOXICOLOGY = "Toxicology"
    URINALYSIS = "Urinalysis"
    ENDOCRINOLOGY = "Endocrinology"
    GENETICS = "Genetics"
    TUMOR_MARKERS = "Tumor Markers"


class ImagingSubCategory(StrEnum):
    RADIOGRAPHY = "X-ray"
    CT = "Computed Tomography (CT)"
    MRI = "Magnetic Resonance Imaging (MRI)"
    ULTRASOUND = "Ultrasound"
    MAMMOGRAPHY = "Mammography"
    NUCLEAR = "Nuclear Medicine"
    PET = "Positron Emission Tomography (PET)"
    FLUOROSCOPY = "Fluoroscopy"
    DENSITOMETRY = "Bone Densitometry"
    ANGIOGRAPHY = "Angiography"


# Plain entries match as substrings; ``\b``-prefixed entries are regexes used for
# short abbreviations that would otherwise hit unrelated words.
type _Rules[T] = tuple[tuple[T, tuple[str, ...]], ...]

_CATEGORY_RULES: Final[_Rules[Category]] = (
    (Category.LABORATORY, ("lab",)),
    (Category.IMAGING, ("imag", "radiolog")),
    (Category.CARDIOLOGY, ("cardio",)),
    (Category.NEUROLOGY, ("neuro",)),
    (Category.PULMONARY, ("pulmo", "lung")),
    (Category.GASTROENTEROLOGY, ("gastro", "digest")),
)

_LABORATORY_RULES: Final[_Rules[LaboratorySubCategory]] = (
    (LaboratorySubCategory.HEMATOLOGY, ("hemat", "haemat", "blood")),
    (LaboratorySubCategory.CHEMISTRY, ("chem",)),
    (LaboratorySubCategory.MICROBIOLOGY, ("micro",)),
    (LaboratorySubCategory.IMMUNOLOGY, ("immun", "sero")),
    (LaboratorySubCategory.MOLECULAR, ("molec", r"\bdna\b", r"\brna\b", "pcr")),
    (LaboratorySubCategory.TOXICOLOGY, ("tox",)),
    (LaboratorySubCategory.URINALYSIS, ("urin", r"\bua\b")),
    (LaboratorySubCategory.ENDOCRINOLOGY, ("endo", "hormon")),
    (LaboratorySubCategory.GENETICS, ("genet",)),
    (LaboratorySubCategory.TUMOR_MARKERS, ("tumor", "cancer", "marker")),
)

_IMAGING_RULES: Final[_Rules[ImagingSubCategory]] = (
    # PET must win over the generic "tomography" rule below
    (ImagingSubCategory.PET, (r"\bpet\b", "positron")),
    (ImagingSubCategory.RADIOGRAPHY, ("x-ray", "xray", "radiograph")),
    (ImagingSubCategory.CT, (r"\bct\b", "tomogra")),
    (ImagingSubCategory.MRI, (r"\bmri\b", "magnetic")),
    (ImagingSubCategory.ULTRASOUND, ("ultra", "sono")),
    (ImagingSubCategory.MAMMOGRAPHY, ("mammo",)),
    (ImagingSubCategory.NUCLEAR, ("nuclear",)),
    (ImagingSubCategory.FLUOROSCOPY, ("fluoro",)),
    (ImagingSubCategory.DENSITOMETRY, ("dexa", "densit")),
    (ImagingSubCategory.ANGIOGRAPHY, ("angio",)),
)


def _matches(text: str, needle: str) -> bool:
    if needle.startswith("\\b"):
        return re.search(needle, text) is not None
    return needle in text


def _first_match[T](text: str, rules: _Rules[T]) -> T | None:
    for value, needles in rules:
        if any(_matches(text, needle) for needle in needles):
            return value
    return None


def normalize_category(raw: str) -> str:
    lowered = raw.strip().lower()
    match = _first_match(lowered, _CATEGORY_RULES)
    return str(match) if match is not None else raw.strip()


def normalize_sub_category(category: str, raw: str) -> str:
    lowered = raw.strip().lower()
    normalized_category = normalize_category(category)
    match: StrEnum | None = None
    if normalized_category == Category.LABORATORY:
        match = _first_match(lowered, _LABORATORY_RULES)
    elif normalized_category == Category.IMAGING:
        match = _first_match(lowered, _IMAGING_RULES)
    return str(match) if match is not None else raw.strip()


def subcategories_for(category: str) -> tuple[str, ...]:
    """Known subcategories for ``category`` (empty for categories without any)."""

    normalized = normalize_category(category)
    if normalized == Category.LABORATORY:
        return tuple(LaboratorySubCategory)
    if normalized == Category.IMAGING:
        return tuple(ImagingSubCategory)
    return ()


class HeuristicClassifier:
    """Default classifier backed by the keyword rules above."""

    def normalize_classification(self, raw: str) -> str:
        return normalize_category(raw)

    def normalize_sub_classification(self, classification: str, raw: str) -> str:
        return normalize_sub_category(classification, raw)


class PassthroughClassifier:
    """Classifier that only trims; for catalogs that use their own taxonomy."""

    def normalize_classification(self, raw: str) -> str:
        return raw.strip()

    def normalize_sub_classification(self, classification: str, raw: str) -> str:
        _ = classification
        return raw.strip()


if TYPE_CHECKING:
    from medirefs.domain.ports import Classifier

    _heuristic_check: Classifier = HeuristicClassifier()
    _passthrough_check: Classifier = PassthroughClassifier()
