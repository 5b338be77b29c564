"""
Renders a Java Playwright (JUnit 5) test class from elaborated test cases.

Each step becomes a short Java fragment chosen by the first matching snippet
rule; the class skeleton lives in templates/automation_test.java.j2.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, NamedTuple, Optional

from jinja2 import Environment, FileSystemLoader

from zenqa.models.test_case_models import ExtractedContext, TestCase
from zenqa.utils.id_generator import file_stamp

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

ERROR_SELECTOR = ".error-message, .alert-danger, [role='alert'], .error"
SEARCH_SELECTOR = "input[type='search'], #search, .search-input, [placeholder*='search']"
ADD_TO_CART_SELECTOR = "button:has-text('Add to Cart'), .add-to-cart, .btn-add-cart"
LOGOUT_SELECTOR = ".logout, #logout, [href*='logout'], button:has-text('Logout')"
DEFAULT_SEARCH_TERM = "test product"

QUOTED_RE = re.compile(r"[\"']([^\"']+)[\"']")
DOUBLE_QUOTED_RE = re.compile(r'"([^"]+)"')
NON_IDENTIFIER_RE = re.compile(r"[^a-zA-Z0-9]")


def java_string(value) -> str:
    """Escape a value for use inside a Java double-quoted literal."""
    text = "" if value is None else str(value)
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    return text.replace("\r", "\\r").replace("\n", "\\n")


def comment(value) -> str:
    """Single-line text safe inside // and /** */ comments."""
    text = " ".join(("" if value is None else str(value)).split())
    return text.replace("*/", "* /")


def _lit(value) -> str:
    return f'"{java_string(value)}"'


def _wait_for(selector: str, timeout_ms: Optional[int] = None) -> str:
    if timeout_ms is None:
        return f"page.waitForSelector({_lit(selector)});"
    return (
        f"page.waitForSelector({_lit(selector)}, "
        f"new Page.WaitForSelectorOptions().setTimeout({timeout_ms}));"
    )


def _println(text: str, suffix: str = "") -> str:
    return f"System.out.println({_lit(text)}{suffix});"


NETWORK_IDLE = "page.waitForLoadState(LoadState.NETWORKIDLE);"


def _has(text: str, *keywords) -> bool:
    return any(k in text for k in keywords)


def _navigate(step, s, ctx):
    if "login" in s:
        target = 'BASE_URL + "/login"'
    elif _has(s, "dashboard", "home"):
        target = 'BASE_URL + "/dashboard"'
    else:
        target = "BASE_URL"
    return [
        f"page.navigate({target});",
        NETWORK_IDLE,
        _println("Navigated to: ", " + page.url()"),
    ]


def _enter_username(step, s, ctx):
    selector = ctx.selectors.username_field
    return [
        _wait_for(selector, 10000),
        f"page.fill({_lit(selector)}, USERNAME);",
        _println("Entered username: ", " + USERNAME"),
    ]


def _enter_password(step, s, ctx):
    selector = ctx.selectors.password_field
    return [
        _wait_for(selector, 10000),
        f"page.fill({_lit(selector)}, PASSWORD);",
        _println("Entered password"),
    ]


def _click_login(step, s, ctx):
    return [
        f"page.click({_lit(ctx.selectors.login_button)});",
        NETWORK_IDLE,
        _println("Clicked login button"),
    ]


def _verify_login(step, s, ctx):
    selector = ctx.selectors.dashboard
    return [
        _wait_for(selector, 15000),
        f'assertTrue(page.isVisible({_lit(selector)}), "Dashboard should be visible after login");',
        _println("Successfully verified login - Dashboard is visible"),
    ]


def _verify_error(step, s, ctx):
    return [
        _wait_for(ERROR_SELECTOR, 10000),
        f'assertTrue(page.isVisible({_lit(ERROR_SELECTOR)}), "Error message should be displayed");',
        f"String errorText = page.textContent({_lit(ERROR_SELECTOR)});",
        _println("Error message displayed: ", " + errorText"),
    ]


def _search(step, s, ctx):
    term = next((f for f in ctx.features if "search" in f), DEFAULT_SEARCH_TERM)
    return [
        _wait_for(SEARCH_SELECTOR),
        f"page.fill({_lit(SEARCH_SELECTOR)}, {_lit(term)});",
        f'page.press({_lit(SEARCH_SELECTOR)}, "Enter");',
        NETWORK_IDLE,
        _println(f"Searched for: {term}"),
    ]


def _add_to_cart(step, s, ctx):
    return [
        _wait_for(ADD_TO_CART_SELECTOR),
        f"page.click({_lit(ADD_TO_CART_SELECTOR)});",
        _println("Added item to cart"),
    ]


def _select_product(step, s, ctx):
    return [
        _wait_for(".product-item, .product, [data-product-id]"),
        'page.click(".product-item:first-child, .product:first-child, [data-product-id]:first-child");',
        _println("Selected product"),
    ]


def _click_button(step, s, ctx):
    match = QUOTED_RE.search(step)
    if match:
        label = match.group(1)
        selector = f"button:has-text('{label}'), [value='{label}']"
        return [
            f"page.click({_lit(selector)});",
            _println(f"Clicked button: {label}"),
        ]
    return [
        "page.click(\"button, [type='button'], [type='submit']\");",
        _println("Clicked button"),
    ]


def _logout(step, s, ctx):
    return [
        f"page.click({_lit(LOGOUT_SELECTOR)});",
        NETWORK_IDLE,
        _println("Logged out successfully"),
    ]


def _wait(step, s, ctx):
    return [
        NETWORK_IDLE,
        "Thread.sleep(2000);",
        _println("Waited for page to load"),
    ]


def _verify_text(step, s, ctx):
    match = DOUBLE_QUOTED_RE.search(step)
    if match is None:
        return [_println("Verified page content")]
    text = match.group(1)
    return [
        f'assertTrue(page.textContent("body").contains({_lit(text)}), '
        f"{_lit(f'Page should contain text: {text}')});",
        _println(f"Verified text: {text}"),
    ]


def _generic_assert(step, s, ctx):
    return [
        f"// Custom verification for: {comment(step)}",
        'assertTrue(page.isVisible("body"), "Page should be loaded");',
        _println(f"Verified: {step}"),
    ]


def _fallback(step, s, ctx):
    return [
        f"// Executing: {comment(step)}",
        "Thread.sleep(1000);",
        _println(f"Executed step: {step}"),
    ]


class SnippetRule(NamedTuple):
    name: str
    applies: Callable[[str], bool]
    render: Callable[[str, str, ExtractedContext], list[str]]


# First match wins; the last rule always applies.
SNIPPET_RULES: tuple[SnippetRule, ...] = (
    SnippetRule("navigate", lambda s: _has(s, "navigate", "open", "launch"), _navigate),
    SnippetRule(
        "enter_username",
        lambda s: "enter" in s and _has(s, "username", "email", "user"),
        _enter_username,
    ),
    SnippetRule("enter_password", lambda s: "enter" in s and "password" in s, _enter_password),
    SnippetRule("click_login", lambda s: "click" in s and _has(s, "login", "sign in"), _click_login),
    SnippetRule(
        "verify_login",
        lambda s: "verify" in s and _has(s, "login", "dashboard", "success"),
        _verify_login,
    ),
    SnippetRule("verify_error", lambda s: "verify" in s and "error" in s, _verify_error),
    SnippetRule("search", lambda s: "search" in s, _search),
    SnippetRule("add_to_cart", lambda s: "add" in s and _has(s, "cart", "basket"), _add_to_cart),
    SnippetRule("select_product", lambda s: "select" in s and "product" in s, _select_product),
    SnippetRule("click_button", lambda s: "click" in s and "button" in s, _click_button),
    SnippetRule("logout", lambda s: _has(s, "logout", "sign out"), _logout),
    SnippetRule("wait", lambda s: _has(s, "wait", "load"), _wait),
    SnippetRule("verify_text", lambda s: "verify" in s and "text" in s, _verify_text),
    SnippetRule("generic_assert", lambda s: _has(s, "assert", "verify"), _generic_assert),
    SnippetRule("fallback", lambda s: True, _fallback),
)


def snippet_for(step: str, ctx: ExtractedContext) -> list[str]:
    step_lower = step.lower()
    for rule in SNIPPET_RULES:
        if rule.applies(step_lower):
            return rule.render(step, step_lower, ctx)
    return []


def step_lines(tc: TestCase, ctx: ExtractedContext) -> list[str]:
    """Java statements for one test method body; "" marks a blank line."""
    lines = []
    for number, step in enumerate(tc.steps, start=1):
        lines.append(f"// Step {number}: {comment(step)}")
        lines.extend(snippet_for(step, ctx))
        lines.append("")
    lines.append("// Take screenshot for verification")
    lines.append(f"takeScreenshot({_lit(NON_IDENTIFIER_RE.sub('_', tc.test_case_id))});")
    return lines


def class_name_for(generated_at: datetime) -> str:
    stamp = file_stamp(generated_at)
    return "AutomationTest_" + re.sub(r"[-T]", "_", stamp).rstrip("Z")


class TestMethod(NamedTuple):
    name: str
    title: str
    test_case: TestCase
    lines: list[str]


class CodeGenerator:

    def __init__(self):
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["java_string"] = java_string
        self.env.filters["comment"] = comment
        self.template = self.env.get_template("automation_test.java.j2")

    def build_methods(self, cases: list[TestCase], ctx: ExtractedContext) -> list[TestMethod]:
        methods = []
        used: set[str] = set()
        for index, tc in enumerate(cases, start=1):
            name = "test" + NON_IDENTIFIER_RE.sub("_", tc.test_case_id)
            unique, n = name, 2
            while unique in used:
                unique = f"{name}_{n}"
                n += 1
            used.add(unique)
            methods.append(TestMethod(
                name=unique,
                title=tc.name or f"Test Case {index}",
                test_case=tc,
                lines=step_lines(tc, ctx),
            ))
        return methods

    def render(
        self,
        cases: list[TestCase],
        ctx: ExtractedContext,
        story: str,
        generated_at: datetime,
    ) -> str:
        """Full Java source for one generated test class."""
        class_name = class_name_for(generated_at)
        code = self.template.render(
            class_name=class_name,
            story=story,
            ctx=ctx,
            generated_on=generated_at.strftime("%Y-%m-%d %H:%M:%S"),
            methods=self.build_methods(cases, ctx),
        )
        logger.info("Rendered %s with %s test method(s)", class_name, len(cases))
        return code
