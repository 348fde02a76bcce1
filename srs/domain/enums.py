from enum import Enum, IntEnum


class Rating(IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


RATING_LABELS = {
    Rating.AGAIN: "Again",
    Rating.HARD: "Hard",
    Rating.GOOD: "Good",
    Rating.EASY: "Easy",
}

# ratings at or above this count as correct recall
PASSING_RATING = Rating.GOOD


class CardStatus(str, Enum):
    NEW = "NEW"
    LEARNING = "LEARNING"
    REVIEW = "REVIEW"
    SUSPENDED = "SUSPENDED"

    @classmethod
    def choices(cls):
        return [(s.value, s.name.title()) for s in cls]
