"""
Tests for deptsync/services/text_sections.py

Covers:
    - merge into empty / manual-only / already-merged text
    - idempotence of merge and strip
    - empty body removes the section and returns None when nothing is left
    - duplicated and unbalanced markers
    - marker strings inside the body cannot forge a section
    - round trip over marker-free manual text
    - inline sections close up around the surrounding words
"""

import pytest

from deptsync.services.text_sections import merge_auto_section, strip_auto_section

START = "[ART_AUTO_BLOCKERS]"
END = "[/ART_AUTO_BLOCKERS]"


class TestMerge:
    def test_merge_into_none_returns_only_the_section(self):
        assert merge_auto_section(None, "- a", START, END) == f"{START}\n- a\n{END}"

    def test_merge_appends_after_manual_text(self):
        result = merge_auto_section("Bring rain gear.", "- a", START, END)
        assert result == f"Bring rain gear.\n\n{START}\n- a\n{END}"

    def test_merge_replaces_existing_section(self):
        original = f"Manual line\n\n{START}\n- old\n{END}"
        result = merge_auto_section(original, "- new", START, END)
        assert result == f"Manual line\n\n{START}\n- new\n{END}"
        assert "- old" not in result

    def test_merge_is_idempotent(self):
        once = merge_auto_section("Notes", "- a\n- b", START, END)
        twice = merge_auto_section(once, "- a\n- b", START, END)
        assert once == twice

    def test_manual_text_after_section_is_kept_in_order(self):
        original = f"Top\n\n{START}\n- old\n{END}\n\nBottom"
        result = merge_auto_section(original, "- new", START, END)
        assert result == f"Top\n\nBottom\n\n{START}\n- new\n{END}"

    def test_empty_body_removes_section(self):
        original = f"Keep me\n\n{START}\n- old\n{END}"
        assert merge_auto_section(original, "", START, END) == "Keep me"
        assert merge_auto_section(original, None, START, END) == "Keep me"

    def test_empty_body_and_no_manual_text_returns_none(self):
        assert merge_auto_section(f"{START}\n- old\n{END}", None, START, END) is None
        assert merge_auto_section(None, "   ", START, END) is None

    def test_body_markers_are_removed(self):
        body = f"- a {END} injected {START}"
        result = merge_auto_section(None, body, START, END)
        assert result.count(START) == 1
        assert result.count(END) == 1

    def test_nested_marker_fragments_in_body_are_removed(self):
        # Removing the inner marker would otherwise assemble a new one
        body = "- x [ART_AUTO_[ART_AUTO_BLOCKERS]BLOCKERS]"
        result = merge_auto_section(None, body, START, END)
        assert result == f"{START}\n- x\n{END}"

    def test_other_department_section_is_untouched(self):
        other = "[GE_AUTO_BLOCKERS]\n- ge\n[/GE_AUTO_BLOCKERS]"
        result = merge_auto_section(other, "- art", START, END)
        assert result.startswith(other)
        assert result.endswith(f"{START}\n- art\n{END}")


class TestStrip:
    def test_none_stays_none(self):
        assert strip_auto_section(None, START, END) is None

    def test_text_without_markers_is_only_rstripped(self):
        assert strip_auto_section("Line one\nLine two  \n\n", START, END) == "Line one\nLine two"

    def test_duplicated_sections_are_all_removed(self):
        original = f"A\n\n{START}\n1\n{END}\n\nB\n\n{START}\n2\n{END}"
        assert strip_auto_section(original, START, END) == "A\n\nB"

    def test_strip_is_idempotent(self):
        original = f"A\n\n{START}\n1\n{END}\n\nB"
        once = strip_auto_section(original, START, END)
        assert strip_auto_section(once, START, END) == once

    def test_unbalanced_start_marker_is_plain_text(self):
        original = f"Note about {START} with no end"
        assert strip_auto_section(original, START, END) == original

    def test_dangling_start_before_a_full_section(self):
        original = f"{START} stray\n\n{START}\n- x\n{END}"
        assert strip_auto_section(original, START, END) == f"{START} stray"

    def test_only_section_leaves_empty_string(self):
        assert strip_auto_section(f"{START}\n- x\n{END}\n", START, END) == ""

    def test_inline_section_closes_up(self):
        assert strip_auto_section(f"Call at 6 {START}auto{END} sharp", START, END) == "Call at 6 sharp"
        assert strip_auto_section(f"Call at 6{START}auto{END}sharp", START, END) == "Call at 6sharp"

    def test_inline_section_at_line_edges(self):
        assert strip_auto_section(f"Head\n{START}x{END} tail", START, END) == "Head\ntail"
        assert strip_auto_section(f"Call {START}x{END}\nNext", START, END) == "Call\nNext"


MANUAL_TEXTS = [
    "",
    "Bring rain gear.",
    "Bring rain gear.\n\nParking at lot B.\n\n\nCall the gaffer first.",
    "Trailing spaces   \n\n  ",
    "Line one\r\nLine two\r\n",
]


class TestRoundTrip:
    @pytest.mark.parametrize("manual", MANUAL_TEXTS)
    def test_merge_then_strip_restores_manual_text(self, manual):
        merged = merge_auto_section(manual, "- [CRITICAL] a\n- [INFO] b", START, END)

        assert strip_auto_section(merged, START, END) == manual.rstrip()
        assert merge_auto_section(merged, "- [CRITICAL] a\n- [INFO] b", START, END) == merged
        assert merge_auto_section(manual, None, START, END) == (manual.rstrip() or None)

    @pytest.mark.parametrize("manual", MANUAL_TEXTS)
    def test_clearing_a_merged_section(self, manual):
        merged = merge_auto_section(manual, "- a", START, END)
        assert merge_auto_section(merged, None, START, END) == (manual.rstrip() or None)
