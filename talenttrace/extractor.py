"""Extraction cascade for unstable profile markup.

Every field is read through an ordered list of location strategies and
the first non-blank result wins. Repeating sections (experience,
education, skills) are located the same way, with one broader fallback
strategy, and then read entry by entry.

Failure policy:
    A missing sub-field leaves that field empty; it never discards the
    entry. A missing field or section raises ExtractionError, which the
    profile scraper downgrades to a warning.
"""

from collections.abc import Sequence

from talenttrace.cascades import (
    BASIC_INFO_FIELDS,
    EDUCATION_SECTION,
    EXPERIENCE_SECTION,
    SKILLS_SECTION,
    SectionSpec,
)
from talenttrace.driver import AutomationDriver, DriverElement
from talenttrace.exceptions import DriverError, ExtractionError
from talenttrace.locators import LocationStrategy, describe
from talenttrace.logger import get_logger
from talenttrace.models import Education, Experience, ProfileDraft

log = get_logger(__name__)


class ExtractionCascade:
    """Reads profile fields and sections through strategy cascades.

    Attributes:
        driver: Automation driver positioned on a rendered profile page.

    Example:
        cascade = ExtractionCascade(driver)
        name = await cascade.extract_text_by_selectors(NAME, field="name")
        entries = await cascade.extract_section(EXPERIENCE_SECTION)
    """

    def __init__(self, driver: AutomationDriver) -> None:
        self.driver = driver

    async def extract_text_by_selectors(
        self,
        strategies: Sequence[LocationStrategy],
        field: str = "text",
        root: AutomationDriver | DriverElement | None = None,
    ) -> str:
        """Return the first non-blank text produced by ``strategies``.

        Args:
            strategies: Ordered cascade to try.
            field: Field name for logs and errors.
            root: Element to search inside; the whole page by default.

        Returns:
            Stripped text of the first matching element.

        Raises:
            ExtractionError: If every strategy misses or yields blank text.
        """
        root = root if root is not None else self.driver

        for strategy in strategies:
            try:
                element = await root.find_element(strategy)
                text = (await element.text()).strip()
            except DriverError as exc:
                log.debug("Selector miss", field=field, strategy=str(strategy), error=exc.message)
                continue

            if text:
                return text

        raise ExtractionError(field, describe(list(strategies)), "text not found with any selector")

    async def find_section_elements(self, spec: SectionSpec) -> list[DriverElement]:
        """Locate the entry elements of a section.

        Raises:
            ExtractionError: If neither the primary strategies nor the
                fallback match anything.
        """
        for strategy in spec.strategies:
            try:
                elements = await self.driver.find_elements(strategy)
            except DriverError as exc:
                log.debug("Section strategy failed", section=spec.name, strategy=str(strategy), error=exc.message)
                continue
            if elements:
                log.debug("Section located", section=spec.name, strategy=str(strategy), count=len(elements))
                return elements

        tried = describe([*spec.strategies, spec.fallback])
        try:
            elements = await self.driver.find_elements(spec.fallback)
        except DriverError as exc:
            raise ExtractionError(spec.name, tried, f"no {spec.name} elements found") from exc

        if not elements:
            raise ExtractionError(spec.name, tried, f"no {spec.name} elements found")

        log.debug("Section located by fallback", section=spec.name, count=len(elements))
        return elements

    async def _extract_entry(self, spec: SectionSpec, element: DriverElement) -> dict[str, str]:
        entry: dict[str, str] = {}

        if spec.own_text_field is not None:
            try:
                entry[spec.own_text_field] = (await element.text()).strip()
            except DriverError as exc:
                log.debug("Entry text unreadable", section=spec.name, error=exc.message)
                entry[spec.own_text_field] = ""

        for field, strategies in spec.subfields.items():
            try:
                entry[field] = await self.extract_text_by_selectors(
                    strategies, field=f"{spec.name}.{field}", root=element
                )
            except ExtractionError:
                entry[field] = ""

        return entry

    async def extract_section(self, spec: SectionSpec) -> list[dict[str, str]]:
        """Read up to ``spec.max_entries`` entries in document order.

        Returns:
            One dict per kept entry, mapping field names to text.

        Raises:
            ExtractionError: If the section cannot be located at all.
        """
        elements = await self.find_section_elements(spec)
        entries = []

        for index, element in enumerate(elements[: spec.max_entries]):
            entry = await self._extract_entry(spec, element)
            if any(entry.get(key) for key in spec.key_fields):
                entries.append(entry)
            else:
                log.debug("Entry dropped, key fields empty", section=spec.name, index=index)

        if len(elements) > spec.max_entries:
            log.debug(
                "Section truncated",
                section=spec.name,
                found=len(elements),
                kept=spec.max_entries,
            )
        return entries

    async def extract_basic_info(self, draft: ProfileDraft) -> list[str]:
        """Fill name, headline, location and about on ``draft``.

        Returns:
            Names of the fields that could not be found.
        """
        missing = []
        for field, strategies in BASIC_INFO_FIELDS.items():
            try:
                value = await self.extract_text_by_selectors(strategies, field=field)
            except ExtractionError:
                missing.append(field)
                continue
            setattr(draft, field, value)
        return missing

    async def extract_experience(self, draft: ProfileDraft) -> int:
        """Add experience entries to ``draft``; returns how many were added."""
        entries = await self.extract_section(EXPERIENCE_SECTION)
        return sum(draft.add_experience(Experience(**entry)) for entry in entries)

    async def extract_education(self, draft: ProfileDraft) -> int:
        """Add education entries to ``draft``; returns how many were added."""
        entries = await self.extract_section(EDUCATION_SECTION)
        return sum(draft.add_education(Education(**entry)) for entry in entries)

    async def extract_skills(self, draft: ProfileDraft) -> int:
        """Add skills to ``draft``; returns how many were new."""
        entries = await self.extract_section(SKILLS_SECTION)
        return sum(draft.add_skill(entry["name"]) for entry in entries)
