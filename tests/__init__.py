"""Test suite for TalentTrace.

Tests mirror the talenttrace/ package one module per component, plus
test_pipeline.py for the main.py orchestration.

Testing Philosophy:
    - No browser and no network: FakeDriver stands in for Playwright
    - Time is simulated with FakeClock, randomness is seeded
    - Playwright adapter tests mock the Page/Locator API with pytest-mock
"""
