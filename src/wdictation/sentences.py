"""
Sentence helpers for the dictation loop.

The sentence itself comes from an external language model; this module only
builds the prompt for it, tidies its reply, and provides template sentences
for when the model is unavailable.
"""

import random
import re
from typing import Optional

from .models import Difficulty

DIFFICULTY_INSTRUCTIONS = {
    Difficulty.BEGINNER: "Use simple vocabulary and short sentences (8-12 words). "
    "Focus on basic grammar structures.",
    Difficulty.INTERMEDIATE: "Use moderate vocabulary and medium-length sentences (12-18 words). "
    "Include some complex grammar.",
    Difficulty.ADVANCED: "Use sophisticated vocabulary and longer sentences (18-25 words). "
    "Include complex grammar structures and nuanced meanings.",
}

FALLBACK_TEMPLATES = {
    Difficulty.BEGINNER: {
        "n.": [
            "The {word} is very important.",
            "I can see a {word} here.",
            "This {word} is useful.",
        ],
        "v.": [
            "I {word} every day.",
            "Please {word} this carefully.",
            "We should {word} together.",
        ],
        "adj.": [
            "This is very {word}.",
            "The weather is {word} today.",
            "She looks {word}.",
        ],
    },
    Difficulty.INTERMEDIATE: {
        "n.": [
            "The {word} plays an important role in our daily lives.",
            "Understanding this {word} requires careful consideration.",
            "Many people find this {word} quite interesting.",
        ],
        "v.": [
            "Students often {word} when they study hard.",
            "The team decided to {word} their strategy.",
            "She managed to {word} despite the challenges.",
        ],
        "adj.": [
            "The situation became increasingly {word} over time.",
            "His approach was both practical and {word}.",
            "The results were surprisingly {word}.",
        ],
    },
    Difficulty.ADVANCED: {
        "n.": [
            "The intricate {word} of this complex system demonstrates the "
            "sophisticated nature of modern technology.",
            "Scholars have extensively debated the philosophical implications of "
            "this particular {word} throughout history.",
            "The remarkable {word} serves as a testament to human ingenuity and perseverance.",
        ],
        "v.": [
            "Organizations that successfully {word} tend to demonstrate exceptional "
            "strategic planning and execution capabilities.",
            "The ability to {word} effectively distinguishes exceptional leaders "
            "from their contemporaries.",
            "Researchers continue to {word} innovative methodologies to address "
            "contemporary challenges.",
        ],
        "adj.": [
            "The professor's {word} analysis revealed previously unrecognized "
            "patterns in the data.",
            "Her {word} perspective challenged conventional wisdom and sparked "
            "meaningful discourse.",
            "The {word} implications of this discovery extend far beyond initial expectations.",
        ],
    },
}

_CLEANUP_PATTERNS = [
    re.compile(r"^[\"']|[\"']$"),
    re.compile(r"^\d+\.\s*"),
    re.compile(r"^Sentence:\s*", re.IGNORECASE),
    re.compile(r"^Here's?\s+.*?:\s*", re.IGNORECASE),
]


def build_prompt(
    word: str,
    pos: str,
    meaning: str,
    difficulty: Difficulty,
    existing_example: Optional[str] = None,
) -> str:
    difficulty = Difficulty(difficulty)
    prompt = f'Generate a {difficulty.value} level English sentence using the word "{word}" ({pos}).'
    if meaning:
        prompt += f" The word means: {meaning}."
    prompt += f" {DIFFICULTY_INSTRUCTIONS[difficulty]}"
    if existing_example:
        prompt += (
            " Here's an existing example for reference "
            f'(create a different sentence): "{existing_example}"'
        )
    prompt += " Return only the sentence, no additional text or explanations."
    return prompt


def clean_generated_sentence(sentence: str) -> str:
    """Strip quotes, numbering and chatty prefixes from a model reply."""
    for pattern in _CLEANUP_PATTERNS:
        sentence = pattern.sub("", sentence)
    return sentence.strip()


def pos_class(pos: str) -> str:
    pos = (pos or "").lower()
    if "noun" in pos or "n." in pos:
        return "n."
    if "verb" in pos or "v." in pos:
        return "v."
    if "adj" in pos:
        return "adj."
    return "n."


def fallback_sentence(
    word: str,
    pos: str,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
) -> str:
    """Template sentence using ``word``; used when no generated sentence is available."""
    rng = rng or random.Random()
    templates = FALLBACK_TEMPLATES[Difficulty(difficulty)][pos_class(pos)]
    return rng.choice(templates).format(word=word)
