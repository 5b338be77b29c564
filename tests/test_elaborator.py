"""Tests for step elaboration and step enrichment."""
import pytest

from zenqa.models.test_case_models import Category, Level, StepType, TestCase
from zenqa.services.elaborator import (
    StepElaborator,
    build_step_rows,
    classify_step,
    enrich_step,
    estimate_duration,
    placeholder_result,
)


class TestStepEnrichment:
    """Type, complexity and duration of a single step."""

    @pytest.mark.parametrize("step, step_type, complexity, seconds", [
        ("Navigate to the login page", StepType.NAVIGATION, Level.LOW, 3),
        ("Enter valid password in the password field", StepType.DATA_ENTRY, Level.MEDIUM, 8),
        ("Verify search results are displayed and relevant", StepType.VERIFICATION, Level.MEDIUM, 6),
        ("Wait for search results to load", StepType.WAIT, Level.MEDIUM, 12),
        ("Click the Login/Sign In button", StepType.USER_INTERACTION, Level.LOW, 2),
        ("Logout of the app", StepType.CLEANUP, Level.MEDIUM, 5),
        ("Submit the form", StepType.ACTION, Level.MEDIUM, 6),
    ])
    def test_enrich_step(self, step, step_type, complexity, seconds):
        """Ordered keyword table, decision table and rounded duration."""
        estimate = enrich_step(step)
        assert estimate.step_type == step_type
        assert estimate.complexity == complexity
        assert estimate.duration_seconds == seconds

    def test_verification_of_multiple_items_is_high(self):
        """Verifying multiple things is High complexity."""
        estimate = enrich_step("Verify multiple items appear in the cart")
        assert estimate.step_type == StepType.VERIFICATION
        assert estimate.complexity == Level.HIGH
        assert estimate.duration_seconds == 8

    def test_half_seconds_round_up(self):
        """4.5 seconds becomes 5."""
        assert estimate_duration(StepType.CLEANUP, Level.MEDIUM) == 5
        assert estimate_duration(StepType.NAVIGATION, Level.MEDIUM) == 5

    def test_unknown_step_is_action(self):
        """Nothing matched means a generic Action."""
        assert classify_step("Submit the form") == StepType.ACTION


class TestStepRows:
    """Flattening test cases into per-step rows."""

    def test_only_last_row_carries_expected_result(self):
        """Earlier rows get the numbered placeholder."""
        tc = TestCase(
            test_case_id="TC_STEP_001",
            name="Verify login",
            steps=["Navigate to the login page", "Enter username", "Verify dashboard"],
            expected_result="Dashboard is shown",
        )
        rows = build_step_rows([tc])
        assert [r.step_id for r in rows] == [
            "STEP_TC_STEP_001_01", "STEP_TC_STEP_001_02", "STEP_TC_STEP_001_03",
        ]
        assert [r.step_number for r in rows] == [1, 2, 3]
        assert rows[0].expected_result == "Step 1 should be completed successfully"
        assert rows[1].expected_result == placeholder_result(2)
        assert rows[-1].expected_result == "Dashboard is shown"


class TestElaborate:
    """Generating steps from names."""

    def setup_method(self):
        """Set up test fixtures."""
        self.elaborator = StepElaborator()

    def test_successful_login(self):
        """The valid-login variant yields six steps."""
        cases = self.elaborator.elaborate(
            ["Verify successful login with valid credentials"],
            "As a user, I want to login",
        )
        tc = cases[0]
        assert tc.test_case_id == "TC_STEP_001"
        assert tc.category == Category.AUTHENTICATION
        assert tc.priority == Level.HIGH
        assert tc.steps[0] == "Navigate to the application login page"
        assert len(tc.steps) == 6
        assert tc.expected_result == (
            "User should be successfully authenticated and redirected to the main dashboard"
        )

    def test_login_error_variant(self):
        """Names about errors use the failure variant."""
        tc = self.elaborator.elaborate(["Check login error message"], "")[0]
        assert len(tc.steps) == 5
        assert "Verify error message is displayed" in tc.steps

    def test_bucket_without_matching_variant_still_has_steps(self):
        """A login name matching no variant gets the generic skeleton."""
        tc = self.elaborator.elaborate(["Verify login page layout"], "")[0]
        assert tc.category == Category.AUTHENTICATION
        assert tc.steps[0] == "Navigate to the relevant section of the application"
        assert len(tc.steps) == 6

    def test_password_masking(self):
        """Password masking has its own bucket."""
        tc = self.elaborator.elaborate(["Verify password field masking"], "")[0]
        assert tc.category == Category.AUTHENTICATION
        assert tc.priority == Level.MEDIUM
        assert "Verify that characters are masked (shown as dots or asterisks)" in tc.steps

    def test_generic_name(self):
        """Unmatched names get the generic skeleton and default expected result."""
        tc = self.elaborator.elaborate(["Verify checkout total"], "As a buyer, I want to pay")[0]
        assert tc.category == Category.GENERAL
        assert len(tc.steps) == 6
        assert tc.expected_result == 'Test case "Verify checkout total" should be completed successfully'
        assert tc.preconditions == "Application is accessible and ready for testing"

    def test_file_story_upgrades_generic_steps(self):
        """A story about uploads swaps in the file upload skeleton."""
        tc = self.elaborator.elaborate(["Verify document handling"], "I want to upload a file")[0]
        assert tc.category == Category.FILE_MANAGEMENT
        assert tc.steps[0] == "Navigate to the file upload section"

    def test_ids_follow_position(self):
        """Generated ids are TC_STEP_NNN by 1-based position."""
        cases = self.elaborator.elaborate(["Search for shoes", "Register a new account"], "")
        assert [tc.test_case_id for tc in cases] == ["TC_STEP_001", "TC_STEP_002"]
        assert cases[0].category == Category.SEARCH
        assert cases[1].category == Category.REGISTRATION
        assert len(cases[1].steps) == 8

    def test_every_name_gets_steps(self):
        """No elaborated case is ever empty."""
        names = [
            "Verify successful login", "Check login error", "Verify login page layout",
            "Find products", "Register", "Hide password", "Responsive UI", "Anything else",
        ]
        for tc in self.elaborator.elaborate(names, ""):
            assert tc.steps


class TestStoredRowReuse:
    """Previously stored rows win over generated steps."""

    def setup_method(self):
        """Set up test fixtures."""
        self.elaborator = StepElaborator()
        self.stored = [{
            "Test Case ID": "TC_AUTH_001",
            "Test Case Name": "Verify successful login with valid credentials",
            "Category": "Authentication",
            "Priority": "High",
            "Preconditions": "Account exists",
            "Test Steps": "Open the page | Enter credentials | Verify dashboard",
            "Expected Results": "Logged in",
            "Test Data": "user / pass",
        }]

    def test_reuses_row_matching_name_prefix(self):
        """The first 20 characters of the name are enough to match."""
        tc = self.elaborator.elaborate(["Verify successful login"], "", self.stored)[0]
        assert tc.test_case_id == "TC_AUTH_001"
        assert tc.name == "Verify successful login with valid credentials"
        assert tc.steps == ["Open the page", "Enter credentials", "Verify dashboard"]
        assert tc.expected_result == "Logged in"
        assert tc.priority == Level.HIGH

    def test_duplicate_matches_get_distinct_ids(self):
        """Two names reusing one row still have unique ids."""
        cases = self.elaborator.elaborate(
            ["Verify successful login", "VERIFY SUCCESSFUL LOGIN twice"], "", self.stored
        )
        assert [tc.test_case_id for tc in cases] == ["TC_AUTH_001", "TC_AUTH_001_2"]

    def test_row_without_steps_falls_back(self):
        """An empty Test Steps cell is filled from the generated steps."""
        self.stored[0]["Test Steps"] = ""
        tc = self.elaborator.elaborate(["Verify successful login"], "", self.stored)[0]
        assert len(tc.steps) == 6

    def test_non_matching_name_is_generated(self):
        """No containing row means fresh generation."""
        tc = self.elaborator.elaborate(["Search for shoes"], "", self.stored)[0]
        assert tc.test_case_id == "TC_STEP_001"
        assert tc.category == Category.SEARCH
