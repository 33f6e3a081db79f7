"""
Revision engine for syllabus-driven study.

Parses syllabus topics, grades quiz answers, folds the attempt log into
per-topic statistics, classifies mastery and drives a spaced-repetition
revision schedule.
"""

__version__ = "1.0.0"
