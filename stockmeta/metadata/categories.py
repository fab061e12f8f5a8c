"""
Keyword heuristics that map free text onto marketplace taxonomies.

Each platform has a fixed word -> categories table. Text is lowercased and
split on whitespace; every token found in the table adds one hit to each of
its categories. Categories are ranked by hit count, ties keeping the order in
which they were first hit.
"""
from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from .text import split_words


SHUTTERSTOCK_CATEGORIES: List[str] = [
    "Abstract", "Animals/Wildlife", "Arts", "Backgrounds/Textures",
    "Beauty/Fashion", "Buildings/Landmarks", "Business/Finance",
    "Celebrities", "Education", "Food and drink", "Healthcare/Medical",
    "Holidays", "Industrial", "Interiors", "Miscellaneous", "Nature",
    "Objects", "Parks/Outdoor", "People", "Religion", "Science",
    "Signs/Symbols", "Sports/Recreation", "Technology", "Transportation", "Vintage",
]

ADOBE_STOCK_CATEGORIES: List[str] = [
    "Animals",
    "Buildings and Architecture",
    "Business",
    "Drinks",
    "The Environment",
    "States of Mind",
    "Food",
    "Graphic Resources",
    "Hobbies and Leisure",
    "Industry",
    "Landscapes",
    "Lifestyle",
    "People",
    "Plants and Flowers",
    "Culture and Religion",
    "Science",
    "Social Issues",
    "Sports",
    "Technology",
    "Transport",
    "Travel",
]

ADOBE_STOCK_DEFAULT = ["Animals"]
SHUTTERSTOCK_DEFAULT = ["Miscellaneous", "Objects"]


def _table(groups: Dict[str, Sequence[str]]) -> Dict[str, List[str]]:
    """Expand {category: words} into {word: [category]}."""
    table: Dict[str, List[str]] = {}
    for category, words in groups.items():
        for word in words:
            table.setdefault(word, []).append(category)
    return table


ADOBE_STOCK_WORDS = _table({
    "Animals": ["animal", "wildlife", "pet", "dog", "cat", "bird", "fish", "horse", "mammal", "reptile"],
    "Buildings and Architecture": [
        "building", "architecture", "house", "skyscraper", "tower", "monument", "bridge",
        "construction", "apartment",
    ],
    "Business": [
        "business", "office", "meeting", "professional", "corporate", "finance", "economy",
        "management", "entrepreneur", "startup",
    ],
    "Drinks": ["drink", "beverage", "coffee", "tea", "wine", "beer", "cocktail", "juice", "alcohol", "water"],
    "The Environment": [
        "environment", "nature", "ecology", "ecosystem", "sustainable", "green", "climate",
        "pollution", "conservation", "renewable",
    ],
    "States of Mind": [
        "emotion", "feeling", "happiness", "sadness", "depression", "anxiety", "stress", "joy",
        "fear", "love",
    ],
    "Food": ["food", "meal", "cuisine", "restaurant", "dinner", "lunch", "breakfast", "cooking", "fruit", "vegetable"],
    "Graphic Resources": [
        "graphic", "design", "illustration", "vector", "font", "typography", "icon", "logo",
        "pattern", "template",
    ],
    "Hobbies and Leisure": [
        "hobby", "leisure", "recreation", "game", "craft", "diy", "gardening", "reading", "music",
        "entertainment",
    ],
    "Industry": [
        "industry", "factory", "manufacturing", "production", "warehouse", "machinery",
        "industrial", "engineering", "mining", "automation",
    ],
    "Landscapes": ["landscape", "mountain", "valley", "hill", "desert", "forest", "beach", "ocean", "sea", "river"],
    "Lifestyle": [
        "lifestyle", "fashion", "beauty", "trend", "style", "luxury", "wellness", "health",
        "exercise", "home",
    ],
    "People": ["people", "person", "man", "woman", "child", "family", "portrait", "crowd", "human", "adult"],
    "Plants and Flowers": ["plant", "flower", "tree", "garden", "botanical", "floral", "herb", "leaf", "bush", "grass"],
    "Culture and Religion": [
        "culture", "religion", "faith", "tradition", "heritage", "ritual", "ceremony", "worship",
        "festival", "celebration",
    ],
    "Science": [
        "science", "research", "laboratory", "experiment", "chemistry", "physics", "biology",
        "medicine", "innovation",
    ],
    "Social Issues": [
        "social", "issue", "poverty", "inequality", "discrimination", "protest", "activism",
        "community", "diversity", "inclusion",
    ],
    "Sports": [
        "sport", "athlete", "competition", "football", "soccer", "basketball", "tennis",
        "swimming", "running", "fitness",
    ],
    "Technology": [
        "technology", "digital", "computer", "electronic", "device", "software", "hardware",
        "internet", "mobile", "tech",
    ],
    "Transport": [
        "transport", "vehicle", "car", "bus", "train", "aircraft", "airplane", "ship", "bicycle",
        "motorcycle",
    ],
    "Travel": [
        "travel", "tourism", "vacation", "holiday", "adventure", "exploration", "destination",
        "tourist", "journey", "trip",
    ],
})

# Order matters for ties: a word listed under several categories hits them in this order.
SHUTTERSTOCK_WORDS = _table({
    "Abstract": ["abstract", "geometric", "pattern"],
    "Animals/Wildlife": ["animal", "wildlife", "pet", "dog", "cat", "bird", "fish"],
    "Arts": ["art", "painting", "sculpture", "drawing", "creative"],
    "Backgrounds/Textures": ["pattern", "background", "texture", "wallpaper"],
    "Beauty/Fashion": ["beauty", "fashion", "makeup", "model", "style", "clothing"],
    "Buildings/Landmarks": ["building", "architecture", "landmark", "monument", "skyscraper", "house"],
    "Business/Finance": ["business", "finance", "office", "meeting", "corporate", "professional"],
    "Celebrities": ["celebrity", "famous", "star"],
    "Education": ["education", "school", "learning", "student", "book", "classroom"],
    "Food and drink": ["food", "drink", "meal", "restaurant", "cooking", "kitchen"],
    "Healthcare/Medical": ["health", "medical", "doctor", "hospital", "nurse", "medicine"],
    "Holidays": ["holiday", "christmas", "halloween", "easter", "celebration", "festival"],
    "Industrial": ["industrial", "factory", "manufacturing", "machinery", "construction"],
    "Interiors": ["interior", "room", "furniture", "home", "decoration", "indoor"],
    "Miscellaneous": ["misc", "various", "assorted"],
    "Nature": [
        "nature", "landscape", "mountain", "forest", "plant", "flower", "tree", "river", "lake",
        "ocean", "sea",
    ],
    "Objects": ["object", "item", "tool", "product"],
    "Parks/Outdoor": ["landscape", "mountain", "park", "outdoor", "garden", "yard", "camping"],
    "People": ["model", "people", "person", "man", "woman", "child", "family", "group"],
    "Religion": ["religion", "church", "temple", "mosque", "prayer", "spiritual"],
    "Science": ["science", "research", "lab", "chemistry", "biology", "physics"],
    "Signs/Symbols": ["sign", "symbol", "icon", "logo"],
    "Sports/Recreation": ["sport", "game", "play", "athlete", "fitness", "exercise", "recreation"],
    "Technology": ["technology", "computer", "digital", "electronic", "device", "smartphone", "internet"],
    "Transportation": ["transportation", "vehicle", "car", "bus", "train", "plane", "airplane", "ship", "boat"],
    "Vintage": ["vintage", "retro", "antique", "old", "classic"],
})


def count_categories(text: str, table: Dict[str, List[str]]) -> Counter:
    counts: Counter = Counter()
    for word in split_words(text.lower()):
        for category in table.get(word, ()):
            counts[category] += 1
    return counts


def rank_categories(text: str, table: Dict[str, List[str]]) -> List[str]:
    return [category for category, _ in count_categories(text, table).most_common()]


def suggest_categories_for_adobe_stock(title: str, keywords: Iterable[str]) -> List[str]:
    ranked = rank_categories(f"{title} {' '.join(keywords)}", ADOBE_STOCK_WORDS)
    return ranked[:1] if ranked else list(ADOBE_STOCK_DEFAULT)


def suggest_categories_for_shutterstock(title: str, description: str) -> List[str]:
    ranked = rank_categories(f"{title} {description}", SHUTTERSTOCK_WORDS)
    return (ranked + SHUTTERSTOCK_DEFAULT)[:2]


def adobe_stock_category_index(category: Optional[str]) -> Optional[int]:
    """1-based position in the Adobe Stock taxonomy, as used by the video CSV."""
    if category in ADOBE_STOCK_CATEGORIES:
        return ADOBE_STOCK_CATEGORIES.index(category) + 1
    return None
