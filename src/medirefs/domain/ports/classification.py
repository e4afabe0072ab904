"""Port for the category/subcategory classifier."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Classifier(Protocol):
    """Pure mapping from free-text categories to the catalog's canonical ones."""

    def normalize_classification(self, raw: str) -> str: ...

    def normalize_sub_classification(self, classification: str, raw: str) -> str: ...
