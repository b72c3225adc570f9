# ABOUTME: Holds the static keyword tables and override phrase lists used by the classifier.
# ABOUTME: All matching is lower-case substring containment, so short keywords match inside longer words.

from dataclasses import dataclass
from typing import Dict, FrozenSet

from src.common.schemas import KnowledgeCategory

PRIMARY_WEIGHT = 2
SECONDARY_WEIGHT = 1


@dataclass(frozen=True)
class CategoryKeywordSet:
    primary: FrozenSet[str]
    secondary: FrozenSet[str]


CATEGORY_KEYWORDS: Dict[KnowledgeCategory, CategoryKeywordSet] = {
    KnowledgeCategory.FOOD: CategoryKeywordSet(
        primary=frozenset(
            {
                "ingredient", "ingredients", "allergen", "allergens", "menu", "dish", "food", "meal",
                "appetizer", "entree", "dessert", "sauce", "seasoning", "spice", "protein",
                "vegetarian", "vegan", "gluten", "dairy", "nuts", "gluten-free", "dairy-free", "nut-free",
            }
        ),
        secondary=frozenset(
            {
                "contains", "made with", "includes", "free from", "suitable for", "dietary",
                "restriction", "allergy",
            }
        ),
    ),
    KnowledgeCategory.BEVERAGE: CategoryKeywordSet(
        primary=frozenset(
            {
                "coffee", "tea", "espresso", "latte", "cappuccino", "americano", "juice", "smoothie",
                "soda", "soft drink", "beverage", "drink", "milk", "cream", "sugar", "syrup", "iced",
                "hot", "cold", "blended", "cocktail", "martini", "mojito", "whiskey", "vodka", "gin",
                "rum", "beer", "ale", "lager", "mixed drink", "shot", "liqueur", "spirits",
            }
        ),
        secondary=frozenset(
            {
                "caffeine", "decaf", "organic", "fresh", "squeeze", "roast", "bean", "leaf", "alcohol",
                "bartender", "shaken", "stirred", "garnish",
            }
        ),
    ),
    KnowledgeCategory.WINE: CategoryKeywordSet(
        primary=frozenset(
            {
                "wine", "vintage", "grape", "variety", "region", "vineyard", "red wine", "white wine",
                "rosé", "sparkling", "champagne", "cabernet", "merlot", "chardonnay", "pinot",
                "sauvignon", "tannin", "acidity", "pairing", "bordeaux", "burgundy", "napa", "tuscany",
                "rioja", "chianti", "prosecco", "riesling", "gewürztraminer", "syrah", "shiraz",
                "tempranillo", "sangiovese", "nebbiolo", "moscato", "chablis", "barolo", "brunello",
            }
        ),
        secondary=frozenset(
            {
                "bottle", "glass", "cork", "terroir", "sommelier", "tasting", "notes", "bouquet",
                "finish", "decant", "cellar", "aging", "oak", "dry", "sweet", "full-bodied",
                "light-bodied", "crisp", "smooth", "bold", "elegant", "complex", "fruity", "earthy",
                "mineral",
            }
        ),
    ),
    KnowledgeCategory.PROCEDURES: CategoryKeywordSet(
        primary=frozenset(
            {
                "procedure", "protocol", "safety", "sanitation", "hygiene", "cleaning", "sanitizing",
                "washing", "policy", "rule", "regulation", "compliance", "standard", "guideline",
                "emergency", "first aid", "fire", "evacuation", "opening", "closing", "shift",
                "schedule",
            }
        ),
        secondary=frozenset(
            {
                "uniform", "appearance", "customer service", "greeting", "pos", "payment", "cash",
                "credit", "receipt", "reservation", "seating", "table", "service",
            }
        ),
    ),
}

# Override phrases, checked in this order by the classifier.
WINE_PAIRING_PHRASES = (
    "wine pairs", "wine pairing", "which wine", "what wine", "wine goes with", "wine go with",
    "wine recommend", "wine selection", "wine list",
)

COCKTAIL_PHRASES = (
    "cocktail", "how to make", "shake", "muddle", "garnish", "sangria", "mojito", "martini",
    "margarita", "negroni", "spritz", "mimosa", "old fashioned", "manhattan", "daiquiri",
    "cosmopolitan", "bellini", "mulled wine",
)

STRONG_FOOD_INDICATORS = (
    # proteins
    "steak", "beef", "chicken", "pork", "lamb", "fish", "salmon", "duck", "veal", "shrimp",
    "lobster", "scallop", "tuna", "crab", "oyster",
    # dishes and cuts
    "ribeye", "filet", "tomahawk", "angus", "wagyu", "burger", "sandwich", "pizza", "pasta",
    "risotto", "salad", "soup", "wellington", "tartare",
    # cooking methods
    "dry-aged", "grilled", "roasted", "braised", "seared", "fried", "poached", "smoked", "sous vide",
)

WINE_AS_INGREDIENT_PHRASES = (
    "wine jus", "wine sauce", "wine reduction", "wine braised", "wine-braised", "wine glaze",
    "wine marinade", "wine butter", "wine vinegar", "cooked in wine", "cooked in red wine",
    "cooked in white wine", "braised in wine", "braised in red wine", "braised in white wine",
    "poached in wine", "poached in red wine", "poached in white wine",
)

FOOD_PREPARATION_PHRASES = ("how long", "what temperature", "ingredients in", "allergens in", "contains")

BEVERAGE_PREPARATION_PHRASES = ("recipe for cocktail", "serve in glass", "served in glass")

# Context hint vocabularies.
MENU_WINE_TERMS = ("wine", "vintage", "grape", "vineyard", "cabernet", "chardonnay", "pinot", "sauvignon", "merlot")
MENU_BEVERAGE_TERMS = ("drink", "beverage", "cocktail", "coffee", "tea")
SOP_PROCEDURE_TERMS = ("safety", "procedure", "protocol")
