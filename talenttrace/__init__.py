"""TalentTrace core package.

Components of the LinkedIn profile scraping pipeline:
- driver / locators: automation driver interface and its Playwright adapter
- browser: Chromium lifecycle with stealth settings
- timing: humanized delays, scrolling, typing and pointer moves
- defense: CAPTCHA, challenge and rate-limit detection with backoff
- session: login state machine over one browser session
- extractor / cascades: selector cascades for profile fields and sections
- scraper: the per-profile aggregation pipeline
- exporter: CSV, JSON and summary outputs
- logger / exceptions: structured logging and the error hierarchy
"""

__version__ = "1.0.0"
