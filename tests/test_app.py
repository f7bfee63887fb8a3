import json

import pytest
from streamlit.testing.v1 import AppTest


@pytest.fixture
def at():
    app = AppTest.from_file("../app.py", default_timeout=30)
    app.run()
    return app


def _button(app, label):
    return next(b for b in app.button if b.label == label)


def test_default_rows_calculate(at):
    _button(at, "Calculate").click().run()
    summary = at.session_state["grade_summary"]
    assert summary["average"] == 86.1
    assert summary["letter"] == "B"


def test_recalculating_drops_unsaved_result(at):
    _button(at, "Calculate").click().run()
    at.button(key="save_grade").click().run()
    assert at.session_state["pending_save"]["type"] == "grade"

    _button(at, "Calculate").click().run()
    assert "pending_save" not in at.session_state


def test_clear_grades(at):
    _button(at, "Calculate").click().run()
    assert "grade_summary" in at.session_state

    _button(at, "Clear grades").click().run()
    assert "grade_summary" not in at.session_state


def test_final_exam_calculate_and_clear(at):
    at.text_input(key="current_grade").input("85")
    at.text_input(key="desired_grade").input("90")
    at.text_input(key="final_weight").input("30")
    _button(at, "Calculate required score").click().run()
    assert at.session_state["final_summary"]["required_grade"] == 101.7

    _button(at, "Clear final exam").click().run()
    assert "final_summary" not in at.session_state
    assert at.text_input(key="current_grade").value == ""


def test_saved_calculations_listed_and_deleted(at):
    _button(at, "Calculate").click().run()
    at.button(key="save_grade").click().run()
    at.text_input(key="account_id").input("sam").run()
    _button(at, "Save").click().run()

    records = json.loads(at.session_state["calculations_sam"])
    assert len(records) == 1
    assert records[0]["data"]["letter"] == "B"
    assert at.expander[0].label.startswith("Calculation 1 (Grade")

    at.button(key=f"delete_{records[0]['id']}").click().run()
    assert json.loads(at.session_state["calculations_sam"]) == []
    assert any("No saved calculations" in info.value for info in at.info)
