import io

import pandas as pd
import pytest

from gradecalc.backend_logic import GradeEntry, aggregate
from gradecalc.io_csv import (
    COLUMNS,
    entries_from_frame,
    entries_to_csv,
    entries_to_frame,
    read_csv_upload,
    validate_entries_csv,
)


def test_read_csv_upload_normalises_headers():
    df = read_csv_upload(io.StringIO(" Name ,Grade,Credits\nHomework,B+,10\n"))
    assert list(df.columns) == ["assignment", "grade", "weight"]


def test_read_csv_upload_with_competing_aliases():
    df = read_csv_upload(io.StringIO("Name,Label,Grade,Credit,Credits\nHW1,first,A,5,99\n"))
    assert list(df.columns) == ["assignment", "label", "grade", "weight", "credits"]

    entries = entries_from_frame(validate_entries_csv(df))
    assert entries == [GradeEntry("HW1", "A", "5")]


def test_validate_and_parse_upload():
    df = validate_entries_csv(read_csv_upload(io.StringIO(
        "Assignment,Grade,Weight\nHW1,A,5\nProject,B,20\nMidterm,B+,20\nFinal,,55\n"
    )))
    assert list(df.columns) == COLUMNS

    entries = entries_from_frame(df)
    assert entries[0] == GradeEntry("HW1", "A", "5")
    assert entries[3] == GradeEntry("Final", "", "55")
    assert aggregate(entries, "percentage").average == 86.1


def test_validate_without_assignment_column():
    df = validate_entries_csv(read_csv_upload(io.StringIO("grade,weight\n85,50\n")))
    assert entries_from_frame(df) == [GradeEntry("", "85", "50")]


def test_validate_missing_columns():
    with pytest.raises(ValueError, match="weight"):
        validate_entries_csv(read_csv_upload(io.StringIO("Assignment,Grade\nHW1,A\n")))


def test_entries_from_edited_frame():
    # what the data editor hands back after rows are added and numbers typed
    df = pd.DataFrame({
        "Assignment": ["Quiz", None],
        "Grade": [85.0, float("nan")],
        "Weight": [20.0, 5.5],
    })
    assert entries_from_frame(df) == [
        GradeEntry("Quiz", "85", "20"),
        GradeEntry("", "", "5.5"),
    ]


def test_entries_to_csv():
    data = entries_to_csv([GradeEntry("HW1", "A", "5"), GradeEntry("Lab", "B-", "10")])
    assert data.decode("utf-8").splitlines() == [
        "Assignment,Grade,Weight",
        "HW1,A,5",
        "Lab,B-,10",
    ]


def test_entries_to_frame_empty():
    df = entries_to_frame([])
    assert list(df.columns) == COLUMNS
    assert df.empty
