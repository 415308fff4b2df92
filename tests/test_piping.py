"""
Tests for the bracket piping service.
"""

import pytest

from autopopulate.piping import PipingService


@pytest.fixture
def piping(project):
    return project.piping


class TestPiping:
    def test_current_event_reference(self, piping):
        assert piping.render("[weight] kg", "1", "week_1") == "72 kg"

    def test_event_prefixed_reference(self, piping):
        assert piping.render("[baseline][weight]", "1", "week_2") == "70"

    def test_choice_label_and_value(self, piping):
        assert piping.render("[consent]", "1", "baseline") == "Yes"
        assert piping.render("[consent:value]", "1", "baseline") == "1"
        assert piping.render("[consent:label]", "1", "baseline") == "Yes"

    def test_checkbox_labels_in_option_order(self, piping):
        assert piping.render("[week_1][symptoms]", "1", "week_2") == "Headache,Nausea"
        assert piping.render("[week_1][symptoms:value]", "1", "week_2") == "a,b"

    def test_unknown_field_renders_empty(self, piping):
        assert piping.render("[nope]", "1", "week_1") == ""

    def test_missing_value_renders_empty(self, piping):
        assert piping.render("[age]", "1", "week_1") == ""
        assert piping.render("[age]", "999", "baseline") == ""

    def test_two_field_references(self, piping):
        assert piping.render("[age][consent]", "1", "baseline") == "34Yes"

    def test_plain_text(self, piping):
        assert piping.render("no references", "1", "baseline") == "no references"

    def test_failure_renders_empty(self, project):
        class BrokenRecords:
            def get_snapshot(self, record):
                raise RuntimeError("store offline")

        piping = PipingService(BrokenRecords(), project.metadata)
        assert piping.render("[age]", "1", "baseline") == ""
