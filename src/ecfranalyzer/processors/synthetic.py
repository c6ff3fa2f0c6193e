"""
Synthetic sample data used when the eCFR API is unavailable.

When the catalogs cannot be fetched, the sync pass still leaves the store with
well-formed data: a set of plausible titles, a small agency catalog that
references them, and a smooth daily series of title counts with small
day-over-day jitter. Agency counts are derived from the title counts by the
regular AggregationEngine, so every synthetic snapshot obeys the same rules as
a real one.

The generator is driven by a seeded random.Random, so a given seed always
yields the same dataset.
"""

import random
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from ..apis.schema import AgencyRecord, CfrReferencePayload
from ..models import Title

SAMPLE_TITLES: Tuple[Tuple[int, str], ...] = (
    (1, "General Provisions"),
    (7, "Agriculture"),
    (10, "Energy"),
    (12, "Banks and Banking"),
    (14, "Aeronautics and Space"),
    (21, "Food and Drugs"),
    (26, "Internal Revenue"),
    (29, "Labor"),
    (40, "Protection of Environment"),
    (42, "Public Health"),
    (47, "Telecommunication"),
    (49, "Transportation"),
)

# (slug, name, short name, referenced titles, children)
SAMPLE_AGENCIES = (
    ("agriculture-department", "Department of Agriculture", "USDA", (7,), (
        ("forest-service", "Forest Service", "FS", (36,)),
        ("food-safety-and-inspection-service", "Food Safety and Inspection Service", "FSIS", (9,)),
    )),
    ("energy-department", "Department of Energy", "DOE", (10,), ()),
    ("environmental-protection-agency", "Environmental Protection Agency", "EPA", (40,), ()),
    ("federal-communications-commission", "Federal Communications Commission", "FCC", (47,), ()),
    ("health-and-human-services-department", "Department of Health and Human Services", "HHS", (42, 45), (
        ("food-and-drug-administration", "Food and Drug Administration", "FDA", (21,)),
    )),
    ("labor-department", "Department of Labor", "DOL", (20, 29), (
        ("occupational-safety-and-health-administration", "Occupational Safety and Health Administration", "OSHA", (29,)),
    )),
    ("transportation-department", "Department of Transportation", "DOT", (49,), (
        ("federal-aviation-administration", "Federal Aviation Administration", "FAA", (14,)),
    )),
    ("treasury-department", "Department of the Treasury", "USDT", (12, 26, 31), (
        ("internal-revenue-service", "Internal Revenue Service", "IRS", (26,)),
    )),
)


class SyntheticDataGenerator:
    """
    Generates a consistent fallback dataset.

    Attributes:
        days (int): Length of the daily series.
        jitter (float): Maximum relative day-over-day change.
        growth (float): Average relative daily growth.

    Example:
        generator = SyntheticDataGenerator(seed=7)
        titles = generator.titles()
        series = generator.daily_series(date.today(), titles)
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        days: int = 30,
        jitter: float = 0.002,
        growth: float = 0.0005,
    ):
        if days < 1:
            raise ValueError("days must be at least 1")
        self.rng = random.Random(seed)
        self.days = days
        self.jitter = jitter
        self.growth = growth

    def titles(self) -> List[Title]:
        """Sample titles with base word counts between 200k and 5M."""
        return [
            Title(number=number, name=name, word_count=self.rng.randint(200_000, 5_000_000))
            for number, name in SAMPLE_TITLES
        ]

    def agency_catalog(self) -> List[AgencyRecord]:
        """A small agency catalog in the shape of the agencies endpoint."""
        catalog = []
        for slug, name, short_name, refs, children in SAMPLE_AGENCIES:
            catalog.append(
                AgencyRecord(
                    name=name,
                    short_name=short_name,
                    slug=slug,
                    cfr_references=[CfrReferencePayload(title=t) for t in refs],
                    children=[
                        AgencyRecord(
                            name=child_name,
                            short_name=child_short,
                            slug=child_slug,
                            cfr_references=[
                                CfrReferencePayload(title=t) for t in child_refs
                            ],
                        )
                        for child_slug, child_name, child_short, child_refs in children
                    ],
                )
            )
        return catalog

    def daily_series(
        self, end_day: date, titles: List[Title]
    ) -> List[Tuple[date, List[Title]]]:
        """
        Build one list of titles per day, oldest first, ending on end_day.

        Each title starts near its base count and drifts by growth plus a
        random step within +/- jitter per day. The last day's titles are the
        "current" values.
        """
        start_day = end_day - timedelta(days=self.days - 1)
        levels: Dict[int, float] = {t.number: float(t.word_count) for t in titles}
        names = {t.number: t.name for t in titles}

        series = []
        for offset in range(self.days):
            day = start_day + timedelta(days=offset)
            if offset:
                for number in levels:
                    step = self.growth + self.rng.uniform(-self.jitter, self.jitter)
                    levels[number] = max(0.0, levels[number] * (1 + step))
            series.append(
                (
                    day,
                    [
                        Title(number=number, name=names[number], word_count=round(level))
                        for number, level in levels.items()
                    ],
                )
            )
        return series
