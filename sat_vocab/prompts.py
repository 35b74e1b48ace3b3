"""Prompt templates for definition fallback and passage generation."""
from __future__ import annotations

DEFINITION_SYSTEM_PROMPT = """\
You are a helpful assistant that provides {tone} definitions for words. For \
common words like "a", "an", "the", "is", "are", "was", "were", "be", "been", \
"being", "have", "has", "had", "do", "does", "did", "will", "would", "could", \
"should", "may", "might", "can", "must", "shall", provide simple, clear \
definitions that a student would understand.

For example:
- "a" should be defined as: "Used before singular nouns to indicate one example of something"
- "the" should be defined as: "Used before nouns to indicate a specific person, place, or thing"
- "is" should be defined as: "Third person singular present tense of 'be'"

{length_rule}"""

CONCISE_LENGTH_RULE = (
    "IMPORTANT: Provide extremely short definitions (under 50 characters) that still "
    "convey the essential meaning. Focus only on the core definition."
)

NORMAL_LENGTH_RULE = (
    "Always provide the part of speech first, then pronunciation in parentheses, then a "
    "clear, concise definition. Keep definitions under 100 characters when possible."
)

DEFINITION_USER_PROMPT = (
    'Define the word "{word}" with its part of speech, pronunciation, and a {size} '
    "definition. Format: Part of Speech (pronunciation) Definition"
)

PASSAGE_PROMPT = """\
Generate a 150-200 word SSAT upper-level reading passage about {topic}.

Requirements:
- Exactly 2-3 paragraphs
- Mix of standard and advanced vocabulary
- Formal, educational tone
- No titles or introductions
- Start directly with the first word of the passage
- Make it completely different from any previous passages

Topic: {topic}"""

TOPIC_CATEGORIES = [
    "Ancient Civilizations", "Renaissance Art", "Quantum Physics", "Marine Biology",
    "Classical Literature", "Modern Architecture", "Space Exploration", "Environmental Science",
    "Medieval History", "Digital Technology", "Human Psychology", "Economic Theory",
    "Philosophical Concepts", "Medical Advances", "Cultural Anthropology", "Astronomy",
    "Political Science", "Chemical Engineering", "Linguistics", "Climate Science",
]

ACADEMIC_FIELDS = [
    "history", "science", "literature", "art",
    "technology", "philosophy", "economics", "psychology",
]


def definition_prompts(word: str, concise: bool) -> tuple[str, str]:
    """Return (system, prompt) for an LLM definition request."""
    system = DEFINITION_SYSTEM_PROMPT.format(
        tone="very short and concise" if concise else "concise, accurate",
        length_rule=CONCISE_LENGTH_RULE if concise else NORMAL_LENGTH_RULE,
    )
    prompt = DEFINITION_USER_PROMPT.format(
        word=word, size="very short" if concise else "clear",
    )
    return system, prompt


def passage_prompt(topic: str) -> str:
    return PASSAGE_PROMPT.format(topic=topic)
