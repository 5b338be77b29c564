"""Custom validators for request data."""

from zenqa.errors import ValidationError


def validate_user_story(story: str, min_length: int = 10, max_length: int = 5000) -> str:
    """Basic story format validation."""
    story = (story or "").strip()
    if not story:
        raise ValidationError(
            "User story is required and cannot be empty",
            "Please provide a valid user story before generating test cases",
        )
    if len(story) < min_length:
        raise ValidationError(
            "User story too short",
            f"Please provide a more detailed user story (minimum {min_length} characters)",
        )
    return check_story_length(story, max_length)


def check_story_length(story: str, max_length: int = 5000) -> str:
    if len(story) > max_length:
        raise ValidationError(
            "User story too long",
            f"Please shorten the user story (maximum {max_length} characters)",
        )
    return story


def validate_test_case_names(names: list[str]) -> list[str]:
    """Filter empty names and strip whitespace."""
    cleaned = [n.strip() for n in names if n and n.strip()]
    if not cleaned:
        raise ValidationError(
            "Test cases are required",
            "Please provide test cases to generate detailed steps",
        )
    return cleaned
