from .data.models import Flashcard, FlashcardReview, LearnerProgress, StudyPreferences

__all__ = ["Flashcard", "FlashcardReview", "LearnerProgress", "StudyPreferences"]
