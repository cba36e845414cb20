"""Fundability criteria definitions: 5 weighted categories with a versioned rubric."""

import enum
import re
from dataclasses import dataclass, field


class CatalogNotFoundError(LookupError):
    """Raised when no catalog is registered under the requested version."""


def industry_slug(industry: str) -> str:
    """Canonical industry key: "Restaurant/Food Service" -> "restaurant_food_service"."""
    return re.sub(r"[^a-z0-9]+", "_", industry.lower()).strip("_")


class ResponseType(str, enum.Enum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    TEXT = "text"
    SELECT = "select"


@dataclass(frozen=True)
class Bucket:
    """Left-inclusive numeric range; ``upper`` is None for the final "+" bucket."""

    label: str
    lower: float
    upper: float | None
    points: float

    def contains(self, value: float) -> bool:
        if value < self.lower:
            return False
        return self.upper is None or value < self.upper


def _parse_lower(label: str) -> float:
    head = label.rstrip("+").split("-", 1)[0].strip()
    return float(head)


@dataclass(frozen=True)
class Criterion:
    """A single scorable question within a category."""

    id: str
    category_id: str
    question: str
    response_type: ResponseType
    weight: float
    required: bool = True
    is_critical: bool = False
    options: tuple[str, ...] = ()
    option_points: tuple[tuple[str, float], ...] = ()  # partial credit per option
    satisfies: tuple[str, ...] = ()  # options worth full weight; empty = any real option
    no_score_options: tuple[str, ...] = ()  # "none" sentinels that never score
    scoring_table: tuple[tuple[str, float], ...] = ()  # ("0-6", 0), ..., ("25+", 7)
    help_text: str = ""

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError(f"Criterion {self.id}: weight must be positive")
        if self.response_type is ResponseType.NUMBER and not self.scoring_table:
            raise ValueError(f"Criterion {self.id}: number criteria need a scoring table")
        for label, points in self.option_points + self.scoring_table:
            if not 0 <= points <= self.weight:
                raise ValueError(
                    f"Criterion {self.id}: points for {label!r} exceed weight {self.weight}"
                )
        if self.options:
            declared = set(self.options)
            referenced = (
                {o for o, _ in self.option_points}
                | set(self.satisfies)
                | set(self.no_score_options)
            )
            unknown = referenced - declared
            if unknown:
                raise ValueError(
                    f"Criterion {self.id}: unknown options {sorted(unknown)}"
                )
        if self.scoring_table:
            # Validates ordering and the trailing "+" bucket eagerly.
            self.buckets()

    def buckets(self) -> tuple[Bucket, ...]:
        """Parse the scoring table into contiguous buckets covering [first, inf)."""
        parsed = [(label, _parse_lower(label), points) for label, points in self.scoring_table]
        if not parsed[-1][0].endswith("+"):
            raise ValueError(f"Criterion {self.id}: last bucket must end with '+'")
        result = []
        for i, (label, lower, points) in enumerate(parsed):
            upper = parsed[i + 1][1] if i + 1 < len(parsed) else None
            if upper is not None and upper <= lower:
                raise ValueError(f"Criterion {self.id}: buckets must be ascending")
            result.append(Bucket(label=label, lower=lower, upper=upper, points=points))
        return tuple(result)


@dataclass(frozen=True)
class Category:
    """A weighted grouping of criteria."""

    id: str
    name: str
    weight: float
    criteria: tuple[Criterion, ...]
    description: str = ""

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError(f"Category {self.id}: weight must not be negative")
        for criterion in self.criteria:
            if criterion.category_id != self.id:
                raise ValueError(
                    f"Criterion {criterion.id} declares category "
                    f"{criterion.category_id!r}, listed under {self.id!r}"
                )


@dataclass(frozen=True)
class CriteriaCatalog:
    """A versioned, ordered set of categories."""

    version: str
    categories: tuple[Category, ...]
    _index: dict[str, Criterion] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for category in self.categories:
            if category.id in seen:
                raise ValueError(f"Duplicate category id {category.id!r}")
            seen.add(category.id)
        for category in self.categories:
            for criterion in category.criteria:
                if criterion.id in self._index:
                    raise ValueError(f"Duplicate criterion id {criterion.id!r}")
                self._index[criterion.id] = criterion
        # Recommendation keys share one namespace across criteria and categories.
        clashes = seen & self._index.keys()
        if clashes:
            raise ValueError(
                f"Criterion ids collide with category ids: {sorted(clashes)}"
            )

    def criterion(self, criterion_id: str) -> Criterion | None:
        return self._index.get(criterion_id)

    def category(self, category_id: str) -> Category | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    @property
    def criteria(self) -> tuple[Criterion, ...]:
        return tuple(self._index.values())


# ── Business Structure (25) ─────────────────────────────────────────────────

BUSINESS_STRUCTURE = Category(
    id="business-structure",
    name="Business Structure",
    description="Legal formation, registration and licensing of the business entity.",
    weight=25,
    criteria=(
        Criterion(
            id="ein",
            category_id="business-structure",
            question="Does your business have a Federal EIN?",
            response_type=ResponseType.BOOLEAN,
            weight=5,
            is_critical=True,
            help_text="An Employer Identification Number is the tax identity lenders check first.",
        ),
        Criterion(
            id="business-type",
            category_id="business-structure",
            question="What is your business entity type?",
            response_type=ResponseType.SELECT,
            weight=4,
            options=("LLC", "Corporation", "Partnership", "Sole Proprietorship"),
            satisfies=("LLC", "Corporation"),
            option_points=(("Partnership", 2), ("Sole Proprietorship", 1)),
            help_text="Incorporated entities separate business and personal liability.",
        ),
        Criterion(
            id="state-registration",
            category_id="business-structure",
            question="Is your business registered with your state?",
            response_type=ResponseType.BOOLEAN,
            weight=4,
        ),
        Criterion(
            id="business-license",
            category_id="business-structure",
            question="Do you hold a current business license?",
            response_type=ResponseType.BOOLEAN,
            weight=3,
            is_critical=True,
        ),
        Criterion(
            id="dba-filing",
            category_id="business-structure",
            question="Have you filed a DBA for any trade name you operate under?",
            response_type=ResponseType.BOOLEAN,
            weight=2,
            required=False,
        ),
        Criterion(
            id="business-age",
            category_id="business-structure",
            question="How many months has your business been operating?",
            response_type=ResponseType.NUMBER,
            weight=7,
            scoring_table=(("0-6", 0), ("7-12", 3), ("13-24", 5), ("25+", 7)),
            help_text="Most lenders look for at least two years of operating history.",
        ),
    ),
)

# ── Credit Profile (30) ─────────────────────────────────────────────────────

CREDIT_PROFILE = Category(
    id="credit-profile",
    name="Credit Profile",
    description="Business and personal credit history as seen by bureaus and lenders.",
    weight=30,
    criteria=(
        Criterion(
            id="business-credit-established",
            category_id="credit-profile",
            question="Has your business established a credit file with the major bureaus?",
            response_type=ResponseType.BOOLEAN,
            weight=6,
        ),
        Criterion(
            id="credit-monitoring",
            category_id="credit-profile",
            question="Do you monitor your business credit reports?",
            response_type=ResponseType.BOOLEAN,
            weight=4,
        ),
        Criterion(
            id="duns-number",
            category_id="credit-profile",
            question="Does your business have a D-U-N-S number?",
            response_type=ResponseType.BOOLEAN,
            weight=5,
            is_critical=True,
        ),
        Criterion(
            id="business-credit-score",
            category_id="credit-profile",
            question="What is your business credit score (Paydex)?",
            response_type=ResponseType.SELECT,
            weight=8,
            required=False,
            options=("No Score", "0-49", "50-69", "70-79", "80-89", "90-100"),
            satisfies=("80-89", "90-100"),
            option_points=(("70-79", 6), ("50-69", 4), ("0-49", 1)),
            no_score_options=("No Score",),
        ),
        Criterion(
            id="personal-credit-score",
            category_id="credit-profile",
            question="What is the owner's personal credit score?",
            response_type=ResponseType.SELECT,
            weight=7,
            is_critical=True,
            options=("Below 600", "600-649", "650-699", "700-749", "750-799", "800+"),
            satisfies=("700-749", "750-799", "800+"),
            option_points=(("650-699", 5), ("600-649", 3)),
            help_text="Early-stage lenders underwrite heavily on the guarantor's personal score.",
        ),
        Criterion(
            id="trade-references",
            category_id="credit-profile",
            question="How many vendor trade lines report your payments?",
            response_type=ResponseType.NUMBER,
            weight=5,
            scoring_table=(("0", 0), ("1-2", 2), ("3-4", 4), ("5+", 5)),
        ),
    ),
)

# ── Banking & Finance (20) ──────────────────────────────────────────────────

BANKING_FINANCE = Category(
    id="banking-finance",
    name="Banking & Finance",
    description="Business banking, bookkeeping and revenue.",
    weight=20,
    criteria=(
        Criterion(
            id="business-bank-account",
            category_id="banking-finance",
            question="Does your business have a dedicated business bank account?",
            response_type=ResponseType.BOOLEAN,
            weight=6,
            is_critical=True,
        ),
        Criterion(
            id="separate-finances",
            category_id="banking-finance",
            question="Are business and personal finances kept fully separate?",
            response_type=ResponseType.BOOLEAN,
            weight=4,
        ),
        Criterion(
            id="business-credit-card",
            category_id="banking-finance",
            question="Does your business hold a business credit card?",
            response_type=ResponseType.BOOLEAN,
            weight=3,
            required=False,
        ),
        Criterion(
            id="accounting-system",
            category_id="banking-finance",
            question="Do you use an accounting system for your books?",
            response_type=ResponseType.BOOLEAN,
            weight=3,
        ),
        Criterion(
            id="annual-revenue",
            category_id="banking-finance",
            question="What is your annual revenue (USD)?",
            response_type=ResponseType.NUMBER,
            weight=4,
            scoring_table=(
                ("0-24999", 0),
                ("25000-49999", 1),
                ("50000-99999", 2),
                ("100000-249999", 3),
                ("250000+", 4),
            ),
        ),
        Criterion(
            id="banking-relationship-months",
            category_id="banking-finance",
            question="How many months have you banked with your current bank?",
            response_type=ResponseType.NUMBER,
            weight=3,
            required=False,
            scoring_table=(("0-5", 0), ("6-11", 1), ("12-23", 2), ("24+", 3)),
        ),
    ),
)

# ── Digital Presence (10) ───────────────────────────────────────────────────

DIGITAL_PRESENCE = Category(
    id="digital-presence",
    name="Digital Presence",
    description="Verifiable contact points and listings lenders use to confirm the business exists.",
    weight=10,
    criteria=(
        Criterion(
            id="business-website",
            category_id="digital-presence",
            question="Does your business have its own website?",
            response_type=ResponseType.BOOLEAN,
            weight=3,
        ),
        Criterion(
            id="business-email",
            category_id="digital-presence",
            question="Do you use an email address on your business domain?",
            response_type=ResponseType.BOOLEAN,
            weight=2,
        ),
        Criterion(
            id="business-phone",
            category_id="digital-presence",
            question="Does your business have a dedicated phone number?",
            response_type=ResponseType.BOOLEAN,
            weight=2,
        ),
        Criterion(
            id="google-business-listing",
            category_id="digital-presence",
            question="Is your business listed on Google Business Profile?",
            response_type=ResponseType.BOOLEAN,
            weight=2,
            required=False,
        ),
        Criterion(
            id="directory-listings",
            category_id="digital-presence",
            question="Is your business listed in 411 and other directories?",
            response_type=ResponseType.BOOLEAN,
            weight=1,
            required=False,
        ),
    ),
)

# ── Industry & Operations (15) ──────────────────────────────────────────────

INDUSTRY_OPERATIONS = Category(
    id="industry-operations",
    name="Industry & Operations",
    description="Industry risk, insurance, compliance and financial documentation.",
    weight=15,
    criteria=(
        Criterion(
            id="industry",
            category_id="industry-operations",
            question="Which industry does your business operate in?",
            response_type=ResponseType.SELECT,
            weight=3,
            options=(
                "Retail",
                "Professional Services",
                "Construction",
                "Healthcare",
                "Restaurant/Food Service",
                "Transportation",
                "Technology",
                "Manufacturing",
                "Other",
            ),
        ),
        Criterion(
            id="business-insurance",
            category_id="industry-operations",
            question="Does your business carry general liability insurance?",
            response_type=ResponseType.BOOLEAN,
            weight=4,
        ),
        Criterion(
            id="industry-licenses-compliance",
            category_id="industry-operations",
            question="Do you hold all licenses your industry requires?",
            response_type=ResponseType.BOOLEAN,
            weight=3,
        ),
        Criterion(
            id="business-plan",
            category_id="industry-operations",
            question="Do you have a written business plan?",
            response_type=ResponseType.BOOLEAN,
            weight=2,
            required=False,
        ),
        Criterion(
            id="financial-statements",
            category_id="industry-operations",
            question="Can you provide current profit & loss and balance sheet statements?",
            response_type=ResponseType.BOOLEAN,
            weight=3,
            is_critical=True,
        ),
    ),
)

DEFAULT_CATALOG_VERSION = "2024.1"

CATALOGS: dict[str, CriteriaCatalog] = {
    DEFAULT_CATALOG_VERSION: CriteriaCatalog(
        version=DEFAULT_CATALOG_VERSION,
        categories=(
            BUSINESS_STRUCTURE,
            CREDIT_PROFILE,
            BANKING_FINANCE,
            DIGITAL_PRESENCE,
            INDUSTRY_OPERATIONS,
        ),
    ),
}


def get_catalog(version: str | None = None) -> CriteriaCatalog:
    """Look up a registered catalog; old versions stay registered for re-scoring."""
    key = version or DEFAULT_CATALOG_VERSION
    try:
        return CATALOGS[key]
    except KeyError:
        raise CatalogNotFoundError(f"Criteria catalog {key!r} not found") from None
