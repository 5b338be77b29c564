"""
Builds test-case skeletons for a classified story from the static catalog in
catalog/test_cases.json. Categories without a dedicated catalog use the
Generic one, whose names embed the story text.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, TypeAdapter

from zenqa.models.test_case_models import Category, Level, TestCase
from zenqa.utils.id_generator import generate_test_case_id

logger = logging.getLogger(__name__)

CATALOG_PATH = Path(__file__).parent.parent / "catalog" / "test_cases.json"
GENERIC_CATALOG = "Generic"
STORY_PLACEHOLDER = "{story}"


class CaseSkeleton(BaseModel):
    name: str
    priority: Level
    preconditions: str
    steps: list[str] = Field(..., min_length=1)
    expected_result: str
    sample_data: str


class CaseCatalog(BaseModel):
    prefix: str
    category: Category
    cases: list[CaseSkeleton] = Field(..., min_length=1)


def load_catalogs(path: Path = CATALOG_PATH) -> dict[str, CaseCatalog]:
    return TypeAdapter(dict[str, CaseCatalog]).validate_json(path.read_bytes())


class TestCaseSynthesizer:
    __test__ = False

    def __init__(self, catalogs: Optional[dict[str, CaseCatalog]] = None):
        self.catalogs = catalogs if catalogs is not None else load_catalogs()
        if GENERIC_CATALOG not in self.catalogs:
            raise ValueError("test case catalog has no Generic entry")

    def catalog_for(self, category: Category) -> CaseCatalog:
        return self.catalogs.get(category.value, self.catalogs[GENERIC_CATALOG])

    def synthesize(
        self,
        category: Category,
        story: str,
        seed: int = 1,
        story_ref: Optional[int] = None,
    ) -> list[TestCase]:
        """Ids run seed, seed+1, ... under the catalog's prefix."""
        catalog = self.catalog_for(category)
        story = story.strip()
        cases = [
            TestCase(
                test_case_id=generate_test_case_id(catalog.prefix, seed + offset),
                name=skeleton.name.replace(STORY_PLACEHOLDER, story),
                category=catalog.category,
                priority=skeleton.priority,
                preconditions=skeleton.preconditions,
                steps=list(skeleton.steps),
                expected_result=skeleton.expected_result,
                sample_data=skeleton.sample_data,
                user_story_ref=story_ref,
            )
            for offset, skeleton in enumerate(catalog.cases)
        ]
        logger.info(
            "Synthesized %s test case(s) for %s from the %s catalog",
            len(cases), category.value, catalog.prefix,
        )
        return cases
