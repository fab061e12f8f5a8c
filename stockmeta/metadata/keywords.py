from __future__ import annotations

import re
from typing import Dict, List


MAX_FREEPIK_KEYWORDS = 30
MIN_FREEPIK_KEYWORDS_BEFORE_PADDING = 15

VOCABULARY: Dict[str, List[str]] = {
    "objects": [
        "table", "chair", "desk", "lamp", "computer", "phone", "book", "pen", "pencil", "notebook",
        "cup", "mug", "bottle", "glass", "plate", "bowl", "fork", "knife", "spoon", "watch", "clock",
        "bag", "box", "container", "bin", "trash", "recycle",
    ],
    "nature": [
        "tree", "plant", "flower", "grass", "leaf", "mountain", "river", "lake", "ocean", "sea",
        "beach", "forest", "garden", "park", "sky", "cloud", "rain", "snow", "sun", "moon", "star",
    ],
    "animals": [
        "dog", "cat", "bird", "fish", "horse", "cow", "sheep", "goat", "chicken", "pig", "duck",
        "rabbit", "mouse", "rat", "hamster", "guinea", "turtle", "snake", "lizard", "frog",
    ],
    "colors": [
        "red", "blue", "green", "yellow", "orange", "purple", "pink", "brown", "black", "white",
        "gray", "gold", "silver", "bronze", "copper", "turquoise", "teal", "navy", "maroon", "olive",
    ],
    "materials": [
        "wood", "metal", "plastic", "glass", "ceramic", "cotton", "wool", "silk", "leather", "paper",
        "cardboard", "stone", "marble", "granite", "concrete", "brick", "rubber",
    ],
    "concepts": [
        "happy", "sad", "angry", "calm", "quiet", "loud", "fast", "slow", "big", "small", "tall",
        "short", "long", "wide", "narrow", "thick", "thin", "heavy", "light", "old", "new", "young",
        "ancient", "modern", "futuristic", "vintage", "retro", "classic", "traditional", "contemporary",
    ],
}

STYLE_ADJECTIVES = [
    "elegant", "beautiful", "stylish", "modern", "rustic", "minimalist", "luxurious", "colorful",
    "vintage", "artistic",
]

# (triggers, keywords added when any trigger occurs in the text)
PADDING_RULES = [
    (("indoor", "room", "interior"), ["interior", "indoor", "home", "decor"]),
    (("outdoor", "outside", "garden"), ["outdoor", "exterior", "garden", "nature"]),
    (("person", "people", "man", "woman"), ["person", "people", "lifestyle", "portrait"]),
]


def get_relevant_freepik_keywords(image_description: str) -> List[str]:
    """
    Build up to 30 keywords from free text, used when the model returns too few.

    Words longer than three letters come first (punctuation stripped, order kept),
    then vocabulary and style words found as substrings of the text, then generic
    padding when the list is still short.
    """
    description = image_description.lower()

    keywords: List[str] = []
    for word in description.split():
        if len(word) <= 3:
            continue
        cleaned = re.sub(r"[^\w]", "", word)
        if cleaned and cleaned not in keywords:
            keywords.append(cleaned)

    for words in VOCABULARY.values():
        for word in words:
            if word in description and word not in keywords:
                keywords.append(word)

    for adjective in STYLE_ADJECTIVES:
        if adjective in description and adjective not in keywords:
            keywords.append(adjective)

    if len(keywords) < MIN_FREEPIK_KEYWORDS_BEFORE_PADDING:
        for triggers, extra in PADDING_RULES:
            if any(trigger in description for trigger in triggers):
                keywords.extend(extra)

    return list(dict.fromkeys(keywords))[:MAX_FREEPIK_KEYWORDS]
