from __future__ import annotations

import pytest

from medirefs.domain.classification import (
    Category,
    HeuristicClassifier,
    ImagingSubCategory,
    LaboratorySubCategory,
    normalize_category,
    normalize_sub_category,
    subcategories_for,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("lab", Category.LABORATORY),
        ("  LABORATORY ", Category.LABORATORY),
        ("Radiology", Category.IMAGING),
        ("Cardio workup", Category.CARDIOLOGY),
        ("lung function", Category.PULMONARY),
        ("Digestive", Category.GASTROENTEROLOGY),
    ],
)
def test_categories_fold_onto_canonical_names(raw: str, expected: Category) -> None:
    assert normalize_category(raw) == expected


def test_unknown_category_is_trimmed_and_kept() -> None:
    assert normalize_category("  Dermatology ") == "Dermatology"


def test_canonical_names_are_fixed_points() -> None:
    for category in Category:
        assert normalize_category(category) == category


@pytest.mark.parametrize(
    ("category", "raw", "expected"),
    [
        ("lab", "blood count", LaboratorySubCategory.HEMATOLOGY),
        ("Laboratory Tests", "PCR panel", LaboratorySubCategory.MOLECULAR),
        ("lab", "UA dipstick", LaboratorySubCategory.URINALYSIS),
        ("imaging", "PET scan", ImagingSubCategory.PET),
        ("imaging", "CT abdomen", ImagingSubCategory.CT),
        ("imaging", "DEXA", ImagingSubCategory.DENSITOMETRY),
    ],
)
def test_subcategories_depend_on_category(category: str, raw: str, expected: str) -> None:
    assert normalize_sub_category(category, raw) == expected


def test_short_abbreviations_need_word_boundaries() -> None:
    # "pet" inside "competitive" must not become PET
    assert normalize_sub_category("imaging", "competitive study") == "competitive study"


def test_subcategories_of_other_categories_are_untouched() -> None:
    assert normalize_sub_category("Cardiology", " Stress test ") == "Stress test"
    assert subcategories_for("Cardiology") == ()
    assert subcategories_for("lab") == tuple(LaboratorySubCategory)


def test_heuristic_classifier_delegates_to_rules() -> None:
    classifier = HeuristicClassifier()

    classification = classifier.normalize_classification("imaging")

    assert classification == Category.IMAGING
    assert classifier.normalize_sub_classification(classification, "mri brain") == (
        ImagingSubCategory.MRI
    )
