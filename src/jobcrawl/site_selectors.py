"""
Site selectors - ordered fallback chains for the search and detail pages.

Every list is tried in order and the first selector that yields a value wins.
Defaults target Dice; override any of them under ``selectors:`` in
settings.yaml when the markup changes.
"""

from typing import List

from pydantic import BaseModel, Field


class SiteSelectors(BaseModel):
    # Search results
    card: str = '[data-testid="job-card"]'
    card_title: List[str] = Field(default_factory=lambda: [
        '[data-testid="job-search-job-detail-link"]',
        "a[href*='/job-detail/']",
        "h5 a",
    ])
    card_company: List[str] = Field(default_factory=lambda: [
        'a[href*="/company-profile/"] p',
        '[data-testid="company-name"]',
    ])
    card_location: List[str] = Field(default_factory=lambda: [
        "p.text-sm.font-normal.text-zinc-600",
        '[data-testid="search-result-location"]',
    ])
    card_link: List[str] = Field(default_factory=lambda: [
        '[data-testid="job-search-job-detail-link"]',
        "a[href*='/job-detail/']",
    ])
    page_indicator: str = 'section[aria-label*="Page"]'
    page_indicator_pattern: str = r"of\s+(\d+)"
    next_control: List[str] = Field(default_factory=lambda: [
        'span[aria-label="Next"][role="link"]',
        "a[aria-label='Next']",
        "a[aria-label='Next Page']",
    ])

    # Detail page
    consent: List[str] = Field(default_factory=lambda: [
        'button:has-text("Accept all")',
        'button:has-text("Accept")',
    ])
    description: List[str] = Field(default_factory=lambda: [
        '[data-testid="jobDescriptionHtml"]',
        ".show-more-less-html__markup",
        ".jobs-description__content",
        ".description__text",
        ".job-description",
        "main",
    ])
    posted_at: List[str] = Field(default_factory=lambda: [
        '[data-testid="job-detail-header-card"] span:has-text("ago")',
        "span.posted-time-ago__text",
        ".jobs-unified-top-card__posted-date",
    ])
    apply: List[str] = Field(default_factory=lambda: [
        'button:has-text("Easy apply")',
        'button:has-text("Easy Apply")',
        'apply-button-wc',
    ])
    gate: List[str] = Field(default_factory=lambda: [
        'div[role="dialog"]',
        ".sign-in-outlet",
        ".sign-in-form",
    ])
    detail_title: List[str] = Field(default_factory=lambda: [
        "h1",
        ".topcard__title",
        ".jobs-unified-top-card__job-title",
    ])
    detail_company: List[str] = Field(default_factory=lambda: [
        '[data-cy="companyNameLink"]',
        "a.topcard__org-name-link",
        ".topcard__flavor a",
    ])
    detail_location: List[str] = Field(default_factory=lambda: [
        '[data-cy="location"]',
        ".topcard__flavor--bullet",
        ".jobs-unified-top-card__bullet",
    ])
