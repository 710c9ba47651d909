import random
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, List, Dict, Tuple
from loguru import logger


PLACEHOLDER = "не доступно"
MUSCLE_MARKERS = ("m", "srt", "hellcat", "demon")

# brand -> (description, {category: models})
CATALOG_DATA = {
    "BMW": (
        "German Luxury",
        {
            "седан": ["3 Series", "5 Series", "7 Series"],
            "внедорожник": ["X3", "X5", "X7"],
            "купе": ["2 Series", "4 Series", "8 Series"],
            "пикап": [PLACEHOLDER],
            "маслкар": ["M3", "M5", "M8"],
        },
    ),
    "Dodge": (
        "American Muscle",
        {
            "седан": ["Charger", "Challenger"],
            "внедорожник": ["Durango"],
            "купе": ["Challenger Coupe"],
            "пикап": ["Ram"],
            "маслкар": ["Charger SRT Hellcat", "Challenger SRT Demon"],
        },
    ),
}

BRAND_BADGES = {
    "BMW": ("🇩🇪", "Немецкая премиум"),
    "Dodge": ("🇺🇸", "Американская мощь"),
}


@dataclass(frozen=True)
class Brand:
    """Марка из каталога."""
    name: str
    description: str
    categories: Mapping[str, Tuple[str, ...]]  # Категория -> модели, порядок сохраняется

    def models(self) -> List[str]:
        return [model for models in self.categories.values() for model in models]


class CarCatalog:
    """
    Static read-only catalog of brands, categories and models.
    Built once at startup and shared by every session.
    """

    def __init__(self, brands: List[Brand]):
        self._brands: Dict[str, Brand] = {brand.name: brand for brand in brands}

    def list_brands(self) -> List[str]:
        return list(self._brands)

    def describe(self, brand: str) -> str:
        info = self._brands.get(brand)
        return info.description if info else "Unknown brand"

    def brand_badge(self, brand: str) -> Tuple[str, str]:
        return BRAND_BADGES.get(brand, ("🚗", self.describe(brand)))

    def categories_of(self, brand: str) -> Mapping[str, Tuple[str, ...]]:
        info = self._brands.get(brand)
        if info is None:
            return {}
        return info.categories

    def models_of(self, brand: Optional[str], category: Optional[str]) -> List[str]:
        if not brand or not category:
            return []
        return list(self.categories_of(brand).get(category, ()))

    def _all_models(self) -> List[str]:
        return [model for brand in self._brands.values() for model in brand.models()]

    def _real_models(self) -> List[str]:
        return [model for model in self._all_models() if model != PLACEHOLDER]

    def find_brand_of_model(self, model: str) -> Optional[str]:
        # First match wins if a name is ever duplicated across brands
        for brand in self._brands.values():
            if model in brand.models():
                return brand.name
        return None

    def find_category_of_model(self, brand: Optional[str], model: str) -> Optional[str]:
        if not brand:
            return None
        for category, models in self.categories_of(brand).items():
            if model in models:
                return category
        return None

    @staticmethod
    def is_muscle_car(model: Optional[str]) -> bool:
        if model is None:
            return False
        lowered = model.lower()
        # "m" matches any model containing the letter, kept as the bot always behaved
        return any(marker in lowered for marker in MUSCLE_MARKERS)

    def describe_model(self, brand: Optional[str], model: str) -> str:
        category = self.find_category_of_model(brand, model)
        if category is None:
            return "Описание не найдено"
        suffix = " (Muscle Car)" if self.is_muscle_car(model) else ""
        return f"{brand} {model} - {category}{suffix}"

    def search_partial(self, query: str) -> List[str]:
        needle = query.lower()
        return sorted({model for model in self._all_models() if needle in model.lower()})

    def random_model(self, rng: Optional[random.Random] = None) -> Optional[str]:
        models = self._real_models()
        if not models:
            return None
        return (rng or random).choice(models)

    def top_models(self, limit: int) -> List[str]:
        """Первые `limit` моделей каталога в алфавитном порядке (без рейтинга)."""
        return sorted(self._real_models()[:limit])

    def category_stats(self) -> Dict[str, int]:
        stats: Dict[str, int] = {}
        for brand in self._brands.values():
            for category, models in brand.categories.items():
                stats[category] = stats.get(category, 0) + len(models)
        return stats

    def model_counts(self) -> Dict[str, int]:
        return {
            name: sum(len(models) for models in brand.categories.values())
            for name, brand in self._brands.items()
        }


def build_catalog(data: Optional[dict] = None) -> CarCatalog:
    """
    Build the immutable catalog from raw brand data.
    Called once at startup; the result is injected into the router.
    """
    data = CATALOG_DATA if data is None else data
    brands = []
    for name, (description, categories) in data.items():
        frozen = MappingProxyType({category: tuple(models) for category, models in categories.items()})
        brands.append(Brand(name=name, description=description, categories=frozen))

    catalog = CarCatalog(brands)
    logger.debug(f"Catalog built: {len(brands)} brands, {sum(catalog.model_counts().values())} entries")
    return catalog
