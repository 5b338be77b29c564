"""
Mines a user story for the values a generated automation test needs: base URL,
application name, credentials, feature phrases and login selectors.

Every lookup has a fallback, so extraction never fails.
"""

import logging
import re
from typing import NamedTuple, Optional
from urllib.parse import urlparse

from zenqa.models.test_case_models import ExtractedContext, Selectors

logger = logging.getLogger(__name__)

DEFAULT_APPLICATION = "Application"

URL_RE = re.compile(r"https?://[^\s),]+")


class KnownApplication(NamedTuple):
    host_marker: str
    name: str
    username: str
    password: str
    selectors: Selectors


KNOWN_APPLICATIONS: tuple[KnownApplication, ...] = (
    KnownApplication(
        "saucedemo", "SauceDemo", "standard_user", "secret_sauce",
        Selectors(
            username_field="#user-name",
            password_field="#password",
            login_button="#login-button",
            dashboard=".inventory_list",
        ),
    ),
    KnownApplication(
        "demowebshop", "DemoWebShop", "testuser@tricentis.com", "TestPassword123",
        Selectors(
            username_field="#Email",
            password_field="#Password",
            login_button=".login-button",
            dashboard=".header-links",
        ),
    ),
    KnownApplication(
        "orangehrm", "OrangeHRM", "Admin", "admin123",
        Selectors(
            username_field='[name="username"]',
            password_field='[name="password"]',
            login_button='[type="submit"]',
            dashboard=".dashboard",
        ),
    ),
    KnownApplication(
        "automationexercise", "AutomationExercise", "testuser@automation.com", "TestPass123",
        Selectors(
            username_field='[data-qa="login-email"]',
            password_field='[data-qa="login-password"]',
            login_button='[data-qa="login-button"]',
            dashboard=".nav",
        ),
    ),
    KnownApplication(
        "parabank", "ParaBank", "john", "demo",
        Selectors(
            username_field='[name="username"]',
            password_field='[name="password"]',
            login_button='[type="submit"]',
            dashboard=".account",
        ),
    ),
)

APPLICATION_PATTERNS = (
    re.compile(r"(?:on|in|to)\s+([A-Z][a-zA-Z\s]+)(?:\s+application|\s+app|\s+website|\s+platform)", re.I),
    re.compile(r"(?:login|access|use)\s+([A-Z][a-zA-Z\s]+)", re.I),
    re.compile(r"([A-Z][a-zA-Z\s]+)\s+(?:system|portal|dashboard)", re.I),
    re.compile(r"test\s+([a-zA-Z\s]+)\s+functionality", re.I),
)

EMAIL_RE = re.compile(
    r"(?:username|user|email)[\s:=]+([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})", re.I
)

USERNAME_PATTERNS = (
    re.compile(r"(?:username|user)[\s:=]+([a-zA-Z0-9._-]+)", re.I),
    re.compile(r"with\s+user\s+([a-zA-Z0-9._-]+)", re.I),
    re.compile(r"as\s+([a-zA-Z0-9._-]+)\s+user", re.I),
)

PASSWORD_PATTERNS = (
    re.compile(r"(?:password|pass)[\s:=]+([^\s,]+)", re.I),
    re.compile(r"with\s+password\s+([^\s,]+)", re.I),
    re.compile(r"pass(?:word)?:\s*([^\s,]+)", re.I),
)

ROLE_PASSWORDS = (("admin", "Admin@123"), ("manager", "Manager@123"))
APPLICATION_PASSWORDS = {"SauceDemo": "secret_sauce", "OrangeHRM": "admin123"}

FEATURE_PATTERNS = (
    re.compile(r"(?:want to|need to|able to)\s+([^,.]+)", re.I),
    re.compile(
        r"(?:login|search|create|update|delete|view|manage|access|add|select|buy|purchase|checkout)\s+([^,.]+)",
        re.I,
    ),
    re.compile(r"test\s+([^,.]+)\s+functionality", re.I),
)
FEATURE_MIN_LENGTH = 4
FEATURE_MAX_LENGTH = 49

EMAIL_USERNAME_SELECTOR = '[type="email"], #email, input[name="email"]'

# Selector sets for well-known sites reached without a URL in the story.
STORY_SELECTOR_HINTS = (
    (
        ("amazon", "ecommerce"),
        {
            "username_field": '#ap_email, [name="email"]',
            "password_field": '#ap_password, [name="password"]',
            "login_button": '#signInSubmit, [type="submit"]',
        },
    ),
    (
        ("google",),
        {
            "username_field": '[type="email"]',
            "password_field": '[type="password"]',
            "login_button": '#passwordNext, [type="submit"]',
        },
    ),
)


def _known_application(hostname: str) -> Optional[KnownApplication]:
    for app in KNOWN_APPLICATIONS:
        if app.host_marker in hostname:
            return app
    return None


def _apply_url(ctx: ExtractedContext, url: str):
    ctx.base_url = url
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        hostname = ""
    if not hostname:
        logger.warning("Could not parse URL: %s", url)
        return
    hostname = hostname.replace("www.", "", 1)
    ctx.application_name = hostname.split(".")[0]

    known = _known_application(hostname)
    if known is not None:
        ctx.application_name = known.name
        ctx.username = known.username
        ctx.password = known.password
        ctx.selectors = known.selectors.model_copy()


def _guess_application(story: str) -> Optional[str]:
    for pattern in APPLICATION_PATTERNS:
        match = pattern.search(story)
        if match:
            return match.group(1).strip()
    return None


def _role_username(role: str, application: str) -> str:
    if application.lower() != DEFAULT_APPLICATION.lower():
        return f"{role}@{application.lower()}.com"
    return f"{role}@example.com"


def _extract_username(story: str, story_lower: str, application: str) -> Optional[str]:
    match = EMAIL_RE.search(story)
    if match:
        return match.group(1)
    for pattern in USERNAME_PATTERNS:
        match = pattern.search(story)
        if match and "@" not in match.group(1):
            return match.group(1)
    for role in ("admin", "manager"):
        if role in story_lower:
            return _role_username(role, application)
    return None


def _extract_password(story: str, story_lower: str, application: str) -> Optional[str]:
    for pattern in PASSWORD_PATTERNS:
        match = pattern.search(story)
        if match:
            return match.group(1)
    for role, password in ROLE_PASSWORDS:
        if role in story_lower:
            return password
    return APPLICATION_PASSWORDS.get(application)


def extract_features(story: str) -> list[str]:
    """Phrases following intent verbs, first-seen order, no repeats."""
    features: list[str] = []
    for pattern in FEATURE_PATTERNS:
        for match in pattern.finditer(story):
            feature = match.group(1).strip()
            if FEATURE_MIN_LENGTH <= len(feature) <= FEATURE_MAX_LENGTH and feature not in features:
                features.append(feature)
    return features


def _apply_selector_hints(ctx: ExtractedContext, story_lower: str):
    if "login" not in story_lower and "authenticate" not in story_lower:
        return
    if "email" in story_lower:
        ctx.selectors.username_field = EMAIL_USERNAME_SELECTOR
    if ctx.application_name != DEFAULT_APPLICATION:
        return
    for keywords, selectors in STORY_SELECTOR_HINTS:
        if any(k in story_lower for k in keywords):
            ctx.selectors = ctx.selectors.model_copy(update=selectors)
            break


def extract_context(story: str) -> ExtractedContext:
    story = story or ""
    story_lower = story.lower()
    ctx = ExtractedContext()

    url_match = URL_RE.search(story)
    if url_match:
        _apply_url(ctx, url_match.group(0))
    else:
        ctx.application_name = _guess_application(story) or DEFAULT_APPLICATION

    username = _extract_username(story, story_lower, ctx.application_name)
    if username:
        ctx.username = username

    password = _extract_password(story, story_lower, ctx.application_name)
    if password:
        ctx.password = password

    ctx.features = extract_features(story)
    _apply_selector_hints(ctx, story_lower)

    logger.info(
        "Extracted context: application=%s base_url=%s features=%s",
        ctx.application_name, ctx.base_url, len(ctx.features),
    )
    return ctx
