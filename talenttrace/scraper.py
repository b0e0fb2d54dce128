"""Profile aggregation pipeline.

ProfileScraper drives one authenticated session through a single profile
page in a fixed order:

    navigate -> page-load wait -> obstruction check -> scroll
    -> basic info -> delay -> experience -> delay -> education
    -> delay -> skills -> validate

Every extraction phase is independent. A failed phase is logged as a
warning and the run continues; only the final validation can turn the
accumulated partial results into a hard failure.
"""

from config.settings import GlobalConfig
from talenttrace.exceptions import DriverError, ExtractionError, ObstructionError
from talenttrace.extractor import ExtractionCascade
from talenttrace.logger import get_logger
from talenttrace.models import Profile, ProfileDraft
from talenttrace.session import SessionController, SessionState


class ProfileScraper:
    """Scrapes profiles through an authenticated SessionController.

    Attributes:
        session: Logged-in session that owns the driver.
        config: Configuration shared with the session.

    Example:
        async with SessionController.create(config) as session:
            await session.login()
            profile = await ProfileScraper(session).scrape_profile(
                "https://www.linkedin.com/in/jane-doe"
            )
    """

    def __init__(self, session: SessionController) -> None:
        self.session = session

    @property
    def config(self) -> GlobalConfig:
        return self.session.config

    async def _check_obstruction(self, url: str) -> None:
        if not self.config.check_profile_obstruction:
            return

        _, _, defense = self.session.ensure_open("scrape_profile")
        signature = await defense.guard()
        if signature is None:
            return

        self.session.transition(
            SessionState.OBSTRUCTED,
            kind=signature.kind.value,
            strategy=str(signature.strategy),
            url=url,
        )
        raise ObstructionError(signature.kind.value, str(signature.strategy), url)

    async def scrape_profile(self, url: str) -> Profile:
        """Scrape a single profile page into a validated Profile.

        Args:
            url: Profile URL, navigated to as given.

        Returns:
            The frozen Profile, possibly with empty optional sections.

        Raises:
            SessionStateError: If the session is not authenticated.
            NavigationError: If the profile page cannot be opened.
            ObstructionError: If the profile page is behind a challenge.
            ProfileValidationError: If no name could be extracted.
        """
        self.session.require(SessionState.AUTHENTICATED, "scrape_profile")
        driver, timing, _ = self.session.ensure_open("scrape_profile")
        cascade = ExtractionCascade(driver)
        draft = ProfileDraft(url)

        log = get_logger(__name__, session=self.session.session_id, url=url)
        log.info("Scraping profile")

        await driver.get(url)
        await self.session.wait_for_page_load()

        await self._check_obstruction(url)

        if self.config.simulate_mouse:
            await timing.simulate_mouse_movement()

        try:
            await timing.humanized_scroll()
        except DriverError as exc:
            log.warning("Humanized scroll failed", error=exc.message)

        try:
            missing = await cascade.extract_basic_info(draft)
        except DriverError as exc:
            log.warning("Basic info extraction failed", error=exc.message)
        else:
            if missing:
                log.warning("Basic info fields not found", fields=missing)

        phases = (
            ("experience", cascade.extract_experience),
            ("education", cascade.extract_education),
            ("skills", cascade.extract_skills),
        )
        for section, extract in phases:
            await timing.random_delay()
            try:
                added = await extract(draft)
            except (ExtractionError, DriverError) as exc:
                log.warning(
                    "Section extraction failed",
                    section=section,
                    error=exc.message,
                )
                continue
            log.debug("Section extracted", section=section, entries=added)

        profile = draft.to_profile()
        log.info(
            "Profile scraped",
            name=profile.name,
            experience=len(profile.experience),
            education=len(profile.education),
            skills=len(profile.skills),
        )
        return profile
