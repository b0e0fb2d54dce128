"""Centralised location-strategy cascades for the LinkedIn profile UI.

Each logical field has an ordered cascade: the current markup first, then
older layouts. The first strategy that yields non-blank text wins.
"""

from pydantic import BaseModel, ConfigDict, Field

from talenttrace.locators import CssSelector, Id, LocationStrategy, XPath

# Login form
LOGIN_EMAIL_FIELD = Id("username")
LOGIN_PASSWORD_FIELD = Id("password")
LOGIN_SUBMIT = XPath("//button[@type='submit']")
# Any profile or feed link implies the logged-in shell
AUTHENTICATED_MARKER = XPath("//a[contains(@href, '/in/') or contains(@href, '/feed/')]")

# Top card
NAME = (
    CssSelector("h1.text-heading-xlarge"),
    CssSelector("h1[data-generated-suggestion-target]"),
    CssSelector(".pv-text-details__left-panel h1"),
    CssSelector(".ph5 h1"),
)
HEADLINE = (
    CssSelector(".text-body-medium.break-words"),
    CssSelector(".pv-text-details__left-panel .text-body-medium"),
    CssSelector(".ph5 .text-body-medium"),
    CssSelector("[data-generated-suggestion-target] + div"),
)
LOCATION = (
    CssSelector(".text-body-small.inline.t-black--light.break-words"),
    CssSelector(".pv-text-details__left-panel .text-body-small"),
    CssSelector(".ph5 .text-body-small"),
    CssSelector("span.text-body-small.inline"),
)
ABOUT = (
    CssSelector("#about ~ * .inline-show-more-text span[aria-hidden='true']"),
    CssSelector(".pv-shared-text-with-see-more span[aria-hidden='true']"),
    CssSelector("section[data-section='summary'] .pv-shared-text-with-see-more"),
    CssSelector(".core-section-container__content .inline-show-more-text"),
)

BASIC_INFO_FIELDS: dict[str, tuple[LocationStrategy, ...]] = {
    "name": NAME,
    "headline": HEADLINE,
    "location": LOCATION,
    "about": ABOUT,
}

# Sub-fields inside a list entry (experience and education share markup)
ENTRY_TITLE = (
    CssSelector(".mr1.t-bold span[aria-hidden='true']"),
    CssSelector(".pv-entity__summary-info h3"),
)
ENTRY_SUBTITLE = (
    CssSelector(".t-14.t-normal span[aria-hidden='true']"),
    CssSelector(".pv-entity__secondary-title"),
)
ENTRY_CAPTION = (
    CssSelector(".t-12.t-normal--light span[aria-hidden='true']"),
    CssSelector(".pvs-entity__caption-wrapper"),
    CssSelector(".pv-entity__date-range span:nth-child(2)"),
)
ENTRY_LOCATION = (
    CssSelector(".t-14.t-normal.t-black--light + .t-14.t-normal.t-black--light span[aria-hidden='true']"),
    CssSelector(".pv-entity__location span:nth-child(2)"),
)
ENTRY_DESCRIPTION = (
    CssSelector(".inline-show-more-text span[aria-hidden='true']"),
    CssSelector(".pv-entity__description"),
)


class SectionSpec(BaseModel):
    """Cascade definition for a repeating profile section.

    Attributes:
        name: Section name used in logs and errors.
        strategies: Primary strategies for the entry elements, in order.
        fallback: Broader strategy tried once when no primary one matches.
        subfields: Sub-field cascades evaluated inside each entry element.
        own_text_field: Field that receives the entry element's own text.
        key_fields: An entry is kept only if one of these is non-empty.
        max_entries: Entries examined, in document order.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    strategies: tuple[LocationStrategy, ...]
    fallback: LocationStrategy
    subfields: dict[str, tuple[LocationStrategy, ...]] = Field(default_factory=dict)
    own_text_field: str | None = None
    key_fields: tuple[str, ...]
    max_entries: int = Field(..., ge=1)


EXPERIENCE_SECTION = SectionSpec(
    name="experience",
    strategies=(
        CssSelector("#experience ~ * .pvs-list__item--line-separated"),
        CssSelector(".experience-section .pv-entity__summary-info"),
        CssSelector("section[data-section='experience'] .pv-entity__summary-info"),
    ),
    fallback=XPath("//section[contains(@id, 'experience')]//li[contains(@class, 'artdeco-list__item')]"),
    subfields={
        "title": ENTRY_TITLE,
        "company": ENTRY_SUBTITLE,
        "duration": ENTRY_CAPTION,
        "location": ENTRY_LOCATION,
        "description": ENTRY_DESCRIPTION,
    },
    key_fields=("title", "company"),
    max_entries=5,
)

EDUCATION_SECTION = SectionSpec(
    name="education",
    strategies=(
        CssSelector("#education ~ * .pvs-list__item--line-separated"),
        CssSelector(".education-section .pv-entity__summary-info"),
        CssSelector("section[data-section='education'] .pv-entity__summary-info"),
    ),
    fallback=XPath("//section[contains(@id, 'education')]//li[contains(@class, 'artdeco-list__item')]"),
    subfields={
        "school": ENTRY_TITLE,
        "degree": ENTRY_SUBTITLE,
        "duration": ENTRY_CAPTION,
        "description": ENTRY_DESCRIPTION,
    },
    key_fields=("school", "degree"),
    max_entries=3,
)

SKILLS_SECTION = SectionSpec(
    name="skills",
    strategies=(
        CssSelector("#skills ~ * .mr1.t-bold span[aria-hidden='true']"),
        CssSelector(".skills-section .pv-skill-category-entity__name span"),
        CssSelector("section[data-section='skills'] .pv-skill-category-entity__name span"),
    ),
    fallback=XPath("//section[contains(@id, 'skills')]//span[contains(@class, 't-bold')]"),
    own_text_field="name",
    key_fields=("name",),
    max_entries=10,
)
