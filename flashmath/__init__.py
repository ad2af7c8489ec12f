"""FlashMath: timed flashcards with speed-aware spaced repetition."""
