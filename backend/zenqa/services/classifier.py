"""
Keyword classification of user stories.

Rules are evaluated top to bottom and the first whose keywords occur in the
lower-cased story decides category, priority and complexity. The length and
keyword complexity overrides run afterwards, High check first.
"""

from typing import NamedTuple

from zenqa.models.test_case_models import Category, Level, StoryAnalysis


class CategoryRule(NamedTuple):
    category: Category
    keywords: tuple[str, ...]
    priority: Level
    complexity: Level = Level.MEDIUM


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(Category.AUTHENTICATION, ("login", "authenticate", "sign in"), Level.HIGH),
    CategoryRule(Category.SEARCH, ("search", "find", "filter"), Level.MEDIUM),
    CategoryRule(Category.REGISTRATION, ("register", "signup", "create account"), Level.HIGH),
    CategoryRule(Category.PAYMENT, ("payment", "checkout", "purchase"), Level.HIGH, Level.HIGH),
    CategoryRule(Category.USER_MANAGEMENT, ("profile", "settings", "preferences"), Level.MEDIUM),
    CategoryRule(Category.FILE_MANAGEMENT, ("upload", "download", "file"), Level.MEDIUM, Level.HIGH),
    CategoryRule(Category.COMMUNICATION, ("notification", "email", "alert"), Level.LOW),
)

HIGH_COMPLEXITY_KEYWORDS = ("integration", "api", "database")
HIGH_COMPLEXITY_LENGTH = 200
LOW_COMPLEXITY_LENGTH = 50


def classify_story(story: str) -> StoryAnalysis:
    story_lower = story.lower()
    analysis = StoryAnalysis()

    for rule in CATEGORY_RULES:
        if any(k in story_lower for k in rule.keywords):
            analysis = StoryAnalysis(
                category=rule.category,
                priority=rule.priority,
                complexity=rule.complexity,
            )
            break

    if len(story) > HIGH_COMPLEXITY_LENGTH or any(
        k in story_lower for k in HIGH_COMPLEXITY_KEYWORDS
    ):
        analysis.complexity = Level.HIGH
    elif len(story) < LOW_COMPLEXITY_LENGTH:
        analysis.complexity = Level.LOW

    return analysis
