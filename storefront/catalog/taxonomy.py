"""Storefront category taxonomy.

Categories are identified by slug and grouped into sections. The
taxonomy is a plain text list, one category per line:

    game-credits - Game Credits
    roblox - Game Credits > Roblox
    steam - Gift Cards > Steam

Products reference leaf slugs in their ``category`` field.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Category:
    """A storefront category.

    Attributes:
        slug: Category identifier used in product records and URLs.
        name: Display name (leaf part).
        full_path: Full path (e.g., "Gift Cards > Steam").
        parent_slug: Slug of the section (None for sections).
        level: Depth in the tree (1 = section).
    """

    slug: str
    name: str
    full_path: str
    parent_slug: str | None = None
    level: int = 1
    children: list["Category"] = field(default_factory=list, repr=False)

    @property
    def path_parts(self) -> list[str]:
        """Get list of path components.

        Returns:
            List of category names from section to this category.
        """
        return [part.strip() for part in self.full_path.split(">")]


class Taxonomy:
    """Parser and lookup for the category taxonomy.

    Example usage:
        taxonomy = Taxonomy()
        taxonomy.parse_embedded()
        steam = taxonomy.get("steam")
    """

    EMBEDDED_TAXONOMY = '''
game-credits - Game Credits
roblox - Game Credits > Roblox
fortnite - Game Credits > Fortnite
minecraft - Game Credits > Minecraft
wow - Game Credits > World of Warcraft
cod - Game Credits > Call of Duty
apex - Game Credits > Apex Legends
gift-cards - Gift Cards
steam - Gift Cards > Steam
nintendo - Gift Cards > Nintendo
xbox - Gift Cards > Xbox
playstation - Gift Cards > PlayStation
google-play - Gift Cards > Google Play
apple - Gift Cards > Apple
subscriptions - Subscriptions
ps-plus - Subscriptions > PlayStation Plus
xbox-game-pass - Subscriptions > Xbox Game Pass
nintendo-online - Subscriptions > Nintendo Switch Online
ea-play - Subscriptions > EA Play
discord-nitro - Subscriptions > Discord Nitro
ubisoft-plus - Subscriptions > Ubisoft+
'''.strip()

    def __init__(self) -> None:
        """Initialize with empty category storage."""
        self._categories: dict[str, Category] = {}
        self._sections: list[Category] = []

    def parse_embedded(self) -> list[Category]:
        """Parse the built-in taxonomy.

        Returns:
            List of all categories.
        """
        return self._parse_lines(self.EMBEDDED_TAXONOMY.splitlines())

    def parse_file(self, path: str | Path) -> list[Category]:
        """Parse taxonomy from file.

        Args:
            path: Path to taxonomy file.

        Returns:
            List of all categories.
        """
        with open(path, encoding="utf-8") as f:
            lines = f.readlines()
        return self._parse_lines(lines)

    def _parse_lines(self, lines: list[str]) -> list[Category]:
        self._categories.clear()
        self._sections.clear()
        by_path: dict[str, Category] = {}

        for line in lines:
            line = line.strip()
            if not line or line.startswith("#") or " - " not in line:
                continue

            slug, full_path = (part.strip() for part in line.split(" - ", 1))
            parts = [p.strip() for p in full_path.split(">")]
            category = Category(
                slug=slug,
                name=parts[-1],
                full_path=full_path,
                level=len(parts),
            )
            self._categories[slug] = category
            by_path[" > ".join(parts)] = category

        # Link children to their sections
        for category in self._categories.values():
            if category.level == 1:
                self._sections.append(category)
                continue
            parent = by_path.get(" > ".join(category.path_parts[:-1]))
            if parent is not None:
                category.parent_slug = parent.slug
                parent.children.append(category)

        return list(self._categories.values())

    def get(self, slug: str) -> Category | None:
        """Get category by slug."""
        return self._categories.get(slug)

    def get_sections(self) -> list[Category]:
        """Get top-level sections."""
        return self._sections

    def get_all(self) -> list[Category]:
        """Get all categories."""
        return list(self._categories.values())

    def get_leaf_categories(self) -> list[Category]:
        """Get categories products can belong to."""
        return [c for c in self._categories.values() if not c.children]

    def search(self, query: str) -> list[Category]:
        """Search categories by name or path (case-insensitive).

        Args:
            query: Search query.

        Returns:
            List of matching categories.
        """
        query_lower = query.lower()
        return [
            c for c in self._categories.values()
            if query_lower in c.name.lower() or query_lower in c.full_path.lower()
        ]


_taxonomy: Taxonomy | None = None


def get_taxonomy() -> Taxonomy:
    """Get the parsed built-in taxonomy.

    Returns:
        Taxonomy instance.
    """
    global _taxonomy
    if _taxonomy is None:
        _taxonomy = Taxonomy()
        _taxonomy.parse_embedded()
    return _taxonomy
