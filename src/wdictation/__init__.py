"""Vocabulary dictation practice: answer scoring, sessions and progress analytics."""
