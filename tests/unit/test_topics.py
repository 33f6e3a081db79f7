"""
Unit tests for checkbox topic extraction.
"""

from revision_engine.syllabus.topics import (
    build_topic_refs,
    count_topics,
    parse_topics,
    split_sections,
    syllabus_progress,
)

CHAPTER = """**Mechanics**:
- [x] Newton's Laws
- [ ] Work Energy
Some prose line

Waves:
* [X] Doppler Effect
• [ ] Standing Waves
- [ ]
"""


class TestParseTopics:
    """Tests for parse_topics()."""

    def test_checkbox_lines_only(self):
        topics = parse_topics(CHAPTER)

        assert [t.text for t in topics] == [
            "Newton's Laws",
            "Work Energy",
            "Doppler Effect",
            "Standing Waves",
        ]
        assert [t.completed for t in topics] == [True, False, True, False]

    def test_empty_description(self):
        assert parse_topics("") == []
        assert parse_topics(None) == []

    def test_duplicates_kept(self):
        topics = parse_topics("- [ ] Optics\n- [x] Optics")
        assert len(topics) == 2

    def test_leading_whitespace_and_uppercase_x(self):
        topics = parse_topics("   - [X]   Friction  ")
        assert topics[0].text == "Friction"
        assert topics[0].completed is True

    def test_headers_never_topics(self):
        assert parse_topics("**Mechanics**\nKinematics:\nplain text") == []

    def test_count_topics(self):
        assert count_topics(CHAPTER) == (4, 2)


class TestSplitSections:
    """Tests for split_sections()."""

    def test_groups_under_headers(self):
        sections = split_sections(CHAPTER)

        assert [s.title for s in sections] == ["Mechanics", "Waves"]
        assert len(sections[0].topics) == 2
        assert len(sections[1].topics) == 2

    def test_untitled_leading_section(self):
        sections = split_sections("- [ ] Vectors\n**Motion**\n- [ ] Speed")

        assert sections[0].title is None
        assert sections[0].topics[0].text == "Vectors"
        assert sections[1].title == "Motion"

    def test_header_without_topics_dropped(self):
        sections = split_sections("**Empty**\n**Full**\n- [ ] Item")
        assert [s.title for s in sections] == ["Full"]


class TestTopicRefs:
    """Tests for syllabus flattening."""

    def test_keys_and_chapter_fallback(self):
        subjects = [
            {
                "id": "phy",
                "name": "Physics",
                "chapters": [
                    {"name": "Mechanics", "description": "- [ ] Kinematics\n- [x] Dynamics"},
                    {"name": "Optics", "description": "Read the chapter"},
                ],
            }
        ]
        refs = build_topic_refs(subjects)

        assert [r.key for r in refs] == ["phy__Kinematics", "phy__Dynamics", "phy__Optics"]
        assert refs[2].chapter_name == "Optics"
        assert refs[0].subject_name == "Physics"

    def test_duplicate_keys_first_wins(self):
        subjects = [
            {
                "id": "phy",
                "name": "Physics",
                "chapters": [
                    {"name": "A", "description": "- [ ] Vectors"},
                    {"name": "B", "description": "- [ ] Vectors"},
                ],
            }
        ]
        refs = build_topic_refs(subjects)

        assert len(refs) == 1
        assert refs[0].chapter_name == "A"

    def test_malformed_entries_skipped(self):
        refs = build_topic_refs([None, {"id": "x", "chapters": "nope"}, {"name": "Chem", "chapters": [1]}])
        assert refs == []

    def test_syllabus_progress(self):
        subjects = [
            {"id": "phy", "chapters": [{"description": "- [x] A\n- [ ] B\n- [ ] C"}]},
            {"id": "chem", "chapters": [{"description": "- [x] D"}]},
        ]
        assert syllabus_progress(subjects) == (4, 2, 50)

    def test_syllabus_progress_empty(self):
        assert syllabus_progress([]) == (0, 0, 0)
