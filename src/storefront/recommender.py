"""
Rule-based fragrance recommender behind the storefront chat window.

Each turn is independent: the caller passes the message, whether a quiz is
running, and the quiz preferences gathered so far. Free-text messages go
through a keyword table where the first matching rule wins; the quiz is a
fixed four-step flow whose step number travels with the preferences.
The recommender never raises on unmatched input, it answers with the
top-rated perfumes instead.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence, Tuple

from db.catalog import Catalog
from db.models import Product
from utils.logger import get_logger
from utils.pure import contains_any, contains_word, notes_match

_logger = get_logger(__name__)

MAX_SUGGESTIONS = 3


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: Tuple[str, ...]
    step: int


@dataclass(frozen=True)
class QuizPreferences:
    step: int = 1
    scent_family: Optional[str] = None
    occasion: Optional[str] = None
    experience: Optional[str] = None
    budget: Optional[str] = None


@dataclass(frozen=True)
class ChatResponse:
    response: str
    suggestions: List[Product] = field(default_factory=list)
    quiz_question: Optional[QuizQuestion] = None
    quiz_complete: bool = False
    preferences: Optional[QuizPreferences] = None


@dataclass(frozen=True)
class Rule:
    name: str
    keywords: Tuple[str, ...]
    response: str
    select: Optional[Callable[[Sequence[Product]], List[Product]]] = None
    whole_words: bool = False  # match keywords only as separate words

    def matches(self, message: str) -> bool:
        if self.whole_words:
            return contains_word(message, self.keywords)
        return contains_any(message, self.keywords)


FRESH_NOTES = ("citrus", "lemon", "bergamot", "grapefruit", "mint", "fresh")
WARM_NOTES = ("vanilla", "amber", "musk", "cedar", "sandalwood")

QUIZ_QUESTIONS = {
    1: QuizQuestion(
        "What's your preferred scent family?",
        ("Fresh & Citrusy", "Floral & Romantic", "Woody & Warm", "Oriental & Spicy"),
        1,
    ),
    2: QuizQuestion(
        "When do you typically wear fragrance?",
        ("Daily/Work", "Special Occasions", "Evening/Dates", "All Times"),
        2,
    ),
    3: QuizQuestion(
        "What's your experience level with fragrances?",
        ("Beginner", "Intermediate", "Expert", "Collector"),
        3,
    ),
    4: QuizQuestion(
        "What's your preferred price range?",
        ("Under $50", "$50-$100", "$100-$200", "$200+"),
        4,
    ),
}

# quiz answer fragment -> (note tier, keywords)
SCENT_FAMILIES = {
    "fresh": ("top", ("citrus", "lemon", "bergamot", "mint")),
    "floral": ("middle", ("rose", "jasmine", "lily", "peony")),
    "woody": ("base", ("cedar", "sandalwood", "vetiver", "oak")),
}

# quiz answer -> inclusive/exclusive price test
BUDGET_BANDS = {
    "under $50": lambda price: price < 50,
    "$50-$100": lambda price: 50 <= price <= 100,
    "$100-$200": lambda price: 100 <= price <= 200,
    "$200+": lambda price: price > 200,
}


def _where(predicate: Callable[[Product], bool]):
    def select(products: Sequence[Product]) -> List[Product]:
        return [p for p in products if predicate(p)]

    return select


# Checked top to bottom, first match wins. Gender terms are whole words:
# "men" sits inside "women" and "recommend", "her" inside "there" and "other".
RULES: Tuple[Rule, ...] = (
    Rule(
        "men",
        ("men", "masculine", "him"),
        "Excellent choice! Men's fragrances offer bold, sophisticated profiles. Here are my top recommendations:",
        _where(lambda p: p.category == "men"),
        whole_words=True,
    ),
    Rule(
        "women",
        ("women", "feminine", "her"),
        "Wonderful! Women's fragrances are all about elegance and allure. These are my curated bestsellers:",
        _where(lambda p: p.category == "women"),
        whole_words=True,
    ),
    Rule(
        "quiz",
        ("quiz", "recommend", "help me choose"),
        "I'd love to help you discover your signature scent! Let me ask you a few questions to find your perfect match.",
    ),
    Rule(
        "fresh",
        ("fresh", "citrus", "light", "summer"),
        "Perfect for warm weather! Fresh and citrusy fragrances are invigorating and perfect for daily wear:",
        _where(lambda p: notes_match(p.notes.top, FRESH_NOTES)),
    ),
    Rule(
        "romantic",
        ("romantic", "date", "evening", "special"),
        "For romantic occasions, you'll want something captivating and memorable. These sophisticated fragrances are perfect:",
        _where(lambda p: p.rating >= 4.7),
    ),
    Rule(
        "office",
        ("office", "work", "professional"),
        "For professional settings, you'll want something elegant but not overwhelming. These are perfect for the workplace:",
        _where(lambda p: p.price >= 80 and p.rating >= 4.5),
    ),
    Rule(
        "winter",
        ("winter", "cold", "warm", "cozy"),
        "Winter calls for warm, enveloping fragrances. These rich scents are perfect for cooler weather:",
        _where(lambda p: notes_match(p.notes.base, WARM_NOTES)),
    ),
    Rule(
        "budget",
        ("price", "budget", "affordable"),
        "Great value doesn't mean compromising on quality! Here are exceptional fragrances under $70:",
        _where(lambda p: p.price < 70),
    ),
    Rule(
        "luxury",
        ("luxury", "expensive", "premium"),
        "For the ultimate luxury experience, these premium fragrances represent the pinnacle of perfumery:",
        _where(lambda p: p.price >= 150),
    ),
    Rule(
        "long-lasting",
        ("long lasting", "strong", "projection"),
        "Looking for staying power? These fragrances are known for their excellent longevity and projection:",
        _where(lambda p: p.rating >= 4.6),
    ),
)

FALLBACK_RESPONSE = "Based on our bestsellers and customer favorites, here are some exceptional fragrances I'd recommend:"
QUIZ_RESULT_RESPONSE = "Based on your preferences, I've found the perfect fragrances for you! Here are my personalized recommendations:"
QUIZ_EMPTY_RESPONSE = "Nothing matches every answer exactly, so here are our highest rated fragrances instead:"


def top_rated(products: Sequence[Product], limit: int = MAX_SUGGESTIONS) -> List[Product]:
    return sorted(products, key=lambda p: p.rating, reverse=True)[:limit]


class Recommender:
    def __init__(self, catalog: Optional[Catalog] = None):
        self.catalog = catalog if catalog is not None else Catalog()

    def respond(
        self,
        message: str,
        quiz_active: bool = False,
        preferences: Optional[QuizPreferences] = None,
    ) -> ChatResponse:
        if quiz_active:
            return self.answer_quiz(message, preferences or QuizPreferences())

        products = self.catalog.all()
        for rule in RULES:
            if not rule.matches(message):
                continue
            _logger.debug(f"Chat rule '{rule.name}' matched")
            if rule.select is None:
                return ChatResponse(
                    response=rule.response,
                    quiz_question=QUIZ_QUESTIONS[1],
                    preferences=QuizPreferences(step=1),
                )
            suggestions = rule.select(products)[:MAX_SUGGESTIONS]
            if suggestions:
                return ChatResponse(response=rule.response, suggestions=suggestions)
            break

        return ChatResponse(response=FALLBACK_RESPONSE, suggestions=top_rated(products))

    def answer_quiz(self, answer: str, preferences: QuizPreferences) -> ChatResponse:
        """
        Record the answer for ``preferences.step`` and move to the next question.
        Step 4 produces the final picks and marks the quiz complete. Any other
        step number leaves the preferences untouched.
        """
        step = preferences.step
        if step == 1:
            prefs = replace(preferences, scent_family=answer, step=2)
            text = "Great choice! Now, when do you typically wear fragrance?"
        elif step == 2:
            prefs = replace(preferences, occasion=answer, step=3)
            text = "Perfect! What's your experience level with fragrances?"
        elif step == 3:
            prefs = replace(preferences, experience=answer, step=4)
            text = "Excellent! Finally, what's your preferred price range?"
        elif step == 4:
            prefs = replace(preferences, budget=answer)
            picks = self.personalized(prefs)
            if not picks:
                return ChatResponse(
                    response=QUIZ_EMPTY_RESPONSE,
                    suggestions=top_rated(self.catalog.all()),
                    quiz_complete=True,
                    preferences=prefs,
                )
            return ChatResponse(
                response=QUIZ_RESULT_RESPONSE,
                suggestions=picks,
                quiz_complete=True,
                preferences=prefs,
            )
        else:
            _logger.debug(f"Ignoring quiz answer for unknown step {step}")
            return ChatResponse(
                response="Let's pick up where we left off. Ask me to start the quiz again anytime.",
                preferences=preferences,
            )
        return ChatResponse(
            response=text, quiz_question=QUIZ_QUESTIONS[prefs.step], preferences=prefs
        )

    def personalized(self, preferences: QuizPreferences) -> List[Product]:
        """Filter by scent family and budget band, best rated first."""
        products = self.catalog.all()

        family = (preferences.scent_family or "").lower()
        for key, (tier, keywords) in SCENT_FAMILIES.items():
            if key in family:
                products = [
                    p for p in products if notes_match(getattr(p.notes, tier), keywords)
                ]
                break

        budget = (preferences.budget or "").lower()
        for band, in_band in BUDGET_BANDS.items():
            if band in budget:
                products = [p for p in products if in_band(p.price)]
                break

        return top_rated(products)
