"""Digital-goods catalog generator with deterministic seeding.

Generates realistic game-credit, gift-card and subscription products
plus reviews for every leaf category of the taxonomy. Uses seeded
random for reproducibility.
"""

import hashlib
import random
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from storefront.catalog.taxonomy import Category, Taxonomy, get_taxonomy
from storefront.domain.entities import FAQ, Product, Review


# ============================================================================
# Constants
# ============================================================================

CENTS = Decimal("0.01")

# Face values offered per section
DENOMINATIONS: dict[str, list[int]] = {
    "Game Credits": [5, 10, 25, 50, 100],
    "Gift Cards": [10, 20, 25, 50, 100],
}

# Price ranges for fixed-price products (in currency units)
PRICE_RANGES: dict[str, tuple[int, int]] = {
    "Subscriptions": (5, 70),
    "default": (5, 50),
}

# Product name templates by section
PRODUCT_TEMPLATES: dict[str, list[str]] = {
    "Game Credits": [
        "{name} {adj} Credit Pack",
        "{name} Digital Top-Up",
        "{name} {adj} Currency Bundle",
    ],
    "Gift Cards": [
        "{name} Gift Card",
        "{name} {adj} Gift Card",
        "{name} Digital Gift Code",
    ],
    "Subscriptions": [
        "{name} {months}-Month Membership",
        "{name} {adj} {months}-Month Plan",
    ],
    "default": [
        "{name} {adj} Code",
    ],
}

ADJECTIVES = [
    "Starter", "Value", "Mega", "Ultimate", "Deluxe",
    "Premium", "Classic", "Bonus", "Season", "Global",
]

SUBSCRIPTION_MONTHS = [1, 3, 12]

HOW_TO_USE: dict[str, list[str]] = {
    "Game Credits": [
        "Sign in to your game account.",
        "Open the in-game store and choose Redeem Code.",
        "Enter the code from your order confirmation.",
        "The credits are added to your balance immediately.",
    ],
    "Gift Cards": [
        "Sign in to your platform account.",
        "Go to Redeem a Gift Card in the account settings.",
        "Enter the code from your order confirmation.",
        "The value is added to your wallet.",
    ],
    "Subscriptions": [
        "Sign in to your platform account.",
        "Open the subscription or membership page.",
        "Enter the code from your order confirmation.",
        "Your membership is extended by the purchased period.",
    ],
}

FAQS = [
    FAQ("How fast is delivery?", "Codes are delivered by email within minutes of payment."),
    FAQ("Can I get a refund?", "Unredeemed codes can be refunded within 14 days."),
    FAQ("Is the code region locked?", "Check the product description for region availability."),
]

REVIEW_TITLES = [
    "Instant delivery",
    "Works as described",
    "Great value",
    "Code took a while",
    "Would buy again",
]

REVIEWERS = [
    "Alex", "Sam", "Jordan", "Taylor", "Riley",
    "Casey", "Morgan", "Jamie", "Avery", "Quinn",
]


# ============================================================================
# Generator Configuration
# ============================================================================


@dataclass
class GeneratorConfig:
    """Configuration for catalog generation.

    Attributes:
        seed: Random seed for reproducibility.
        products_per_category: Number of products per leaf category.
        reviews_per_product: Max reviews per product.
        start: Creation time of the first generated product.
    """

    seed: int = 42
    products_per_category: int = 4
    reviews_per_product: int = 3
    start: datetime = field(default_factory=lambda: datetime(2025, 1, 1, tzinfo=timezone.utc))

    @classmethod
    def small(cls) -> "GeneratorConfig":
        """Create config for a small catalog (~70 products)."""
        return cls(seed=42, products_per_category=4, reviews_per_product=3)

    @classmethod
    def full(cls) -> "GeneratorConfig":
        """Create config for a full catalog (~270 products)."""
        return cls(seed=42, products_per_category=15, reviews_per_product=8)


# ============================================================================
# Product Generator
# ============================================================================


class ProductGenerator:
    """Generates digital-goods catalogs with deterministic seeding.

    Example usage:
        generator = ProductGenerator(GeneratorConfig.small())
        for product in generator.generate():
            print(product.name)
    """

    def __init__(self, config: GeneratorConfig, taxonomy: Taxonomy | None = None) -> None:
        """Initialize generator with configuration.

        Args:
            config: Generator configuration.
            taxonomy: Category taxonomy; defaults to the built-in one.
        """
        self.config = config
        self.taxonomy = taxonomy or get_taxonomy()

    def _deterministic_seed(self, *args: str | int) -> int:
        """Create deterministic seed from arguments."""
        data = "|".join(str(a) for a in args)
        hash_bytes = hashlib.md5(data.encode()).digest()
        return int.from_bytes(hash_bytes[:4], "big")

    def _section(self, category: Category) -> str:
        return category.path_parts[0]

    def _generate_image_url(self, product_id: str, variant: int = 0) -> str:
        seed = self._deterministic_seed(product_id, variant)
        return f"https://picsum.photos/seed/{seed}/400/400"

    def _money(self, value: float | int | Decimal) -> Decimal:
        return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)

    def _generate_product(self, category: Category, index: int, position: int) -> Product:
        """Generate a single product.

        Args:
            category: Leaf category.
            index: Product index within the category.
            position: Global position, used to space creation times.

        Returns:
            Generated Product.
        """
        rng = random.Random(self._deterministic_seed(self.config.seed, category.slug, index))
        section = self._section(category)
        product_id = f"{category.slug}-{index:03d}"

        templates = PRODUCT_TEMPLATES.get(section, PRODUCT_TEMPLATES["default"])
        months = rng.choice(SUBSCRIPTION_MONTHS)
        name = rng.choice(templates).format(name=category.name, adj=rng.choice(ADJECTIVES), months=months)

        denominations = None
        if section in DENOMINATIONS:
            options = DENOMINATIONS[section]
            count = rng.randint(2, len(options))
            denominations = tuple(self._money(v) for v in sorted(rng.sample(options, count)))
            price = denominations[0]
        else:
            low, high = PRICE_RANGES.get(section, PRICE_RANGES["default"])
            price = self._money(rng.randint(low, high) - 0.01)

        sale = rng.random() < 0.25
        original_price = None
        if sale:
            markup = Decimal(str(rng.choice([1.1, 1.2, 1.25])))
            original_price = self._money(price * markup)

        created_at = self.config.start + timedelta(hours=position)
        updated_at = created_at + timedelta(days=rng.randint(0, 30))

        return Product(
            id=product_id,
            name=name,
            description=f"Digital {category.name} code delivered instantly by email.",
            long_description=(
                f"{name} for {category.full_path}. Redeem on your account to add "
                "the purchased value. Codes never expire once delivered."
            ),
            price=price,
            original_price=original_price,
            image=self._generate_image_url(product_id),
            additional_images=tuple(self._generate_image_url(product_id, i) for i in range(1, 3)),
            category=category.slug,
            popular=rng.random() < 0.3,
            sale=sale,
            featured=rng.random() < 0.2,
            rating=round(rng.uniform(3.5, 5.0), 1),
            review_count=rng.randint(0, 500),
            denominations=denominations,
            how_to_use=tuple(HOW_TO_USE.get(section, HOW_TO_USE["Gift Cards"])),
            faqs=tuple(FAQS),
            created_at=created_at,
            updated_at=updated_at,
        )

    def generate(self) -> Iterator[Product]:
        """Generate products for every leaf category.

        Yields:
            Generated products, oldest first.
        """
        position = 0
        for category in self.taxonomy.get_leaf_categories():
            for index in range(self.config.products_per_category):
                yield self._generate_product(category, index, position)
                position += 1

    def generate_list(self) -> list[Product]:
        """Generate all products as a list."""
        return list(self.generate())

    def generate_reviews(self, product: Product) -> list[Review]:
        """Generate reviews for a product.

        Args:
            product: Product being reviewed.

        Returns:
            Reviews dated after the product's creation.
        """
        rng = random.Random(self._deterministic_seed(self.config.seed, product.id, "reviews"))
        reviews = []
        for index in range(rng.randint(0, self.config.reviews_per_product)):
            user = rng.choice(REVIEWERS)
            rating = rng.choices([5, 4, 3, 2, 1], weights=[50, 30, 10, 5, 5])[0]
            reviews.append(
                Review(
                    id=f"{product.id}-r{index}",
                    product_id=product.id,
                    user_id=f"user-{user.lower()}",
                    user_name=user,
                    rating=rating,
                    date=product.created_at + timedelta(days=index + 1),
                    title=rng.choice(REVIEW_TITLES),
                    content=f"Bought the {product.name}. {'Recommended.' if rating >= 4 else 'It was okay.'}",
                    helpful=rng.randint(0, 40),
                )
            )
        return reviews
