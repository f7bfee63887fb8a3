import streamlit as st
import pandas as pd

from gradecalc.backend_logic import (
    GRADING_SCALE,
    GradeCalcError,
    LETTER_BOUNDARIES,
    final_exam_summary,
    grade_summary,
    parse_number,
)
from gradecalc.config import (
    CalculatorSettings,
    DEFAULT_ENTRIES,
    GRADE_SCHEME_OPTIONS,
    MAX_SAVED_CALCULATIONS,
    WEIGHT_FORMAT_OPTIONS,
    configure_logging,
)
from gradecalc.io_csv import (
    entries_from_frame,
    entries_to_csv,
    read_csv_upload,
    validate_entries_csv,
)
from gradecalc.storage import CalculationStore, StorageError

configure_logging()


def drop_pending_save(calc_type):
    pending = st.session_state.get("pending_save")
    if pending and pending["type"] == calc_type:
        del st.session_state["pending_save"]


# ------------------------
# Streamlit UI
# ------------------------

st.set_page_config(
    page_title="Grade Calculator | Weighted Average & Final Exam",
    page_icon="📘",
    layout="wide",
)

st.title("📘 Grade Calculator")
st.write(
    "Work out your weighted course average from letter or numeric grades, "
    "check what you need on the remaining work, and find the score you need on the final exam."
)

# ------------------------
# Settings
# ------------------------

with st.sidebar:
    st.header("Settings")
    scheme_label = st.radio("Grade format", list(GRADE_SCHEME_OPTIONS.keys()), index=0)
    weight_label = st.radio("Weight format", list(WEIGHT_FORMAT_OPTIONS.keys()), index=0)

settings = CalculatorSettings(
    scheme=GRADE_SCHEME_OPTIONS[scheme_label],
    weight_format=WEIGHT_FORMAT_OPTIONS[weight_label],
)

# ------------------------
# Grade calculator
# ------------------------

with st.form("grade_input_form"):
    st.subheader("1. Enter your grades")

    entries_csv = st.file_uploader(
        "Optionally upload a CSV (Assignment, Grade, Weight)",
        type=["csv"],
        key="entries_csv",
    )

    entries_seed = pd.DataFrame(DEFAULT_ENTRIES)
    upload_error = None
    if entries_csv is not None:
        try:
            entries_seed = validate_entries_csv(read_csv_upload(entries_csv))
        except (ValueError, pd.errors.ParserError) as e:
            upload_error = str(e)

    if upload_error:
        st.error(f"CSV error: {upload_error}")

    entries_df = st.data_editor(
        entries_seed,
        key="entries_df",
        num_rows="dynamic",
        use_container_width=True,
        column_config={
            "Assignment": st.column_config.TextColumn("Assignment"),
            "Grade": st.column_config.TextColumn(
                "Grade",
                help="A letter such as B+" if settings.scheme == "letters" else "A letter or a number such as 85",
            ),
            "Weight": st.column_config.TextColumn(
                "Weight (%)" if settings.weight_format == "percentage" else "Weight (points)",
            ),
        },
    )

    st.subheader("2. Optional: final grade goal")
    goal_col, remaining_col = st.columns(2)
    with goal_col:
        final_goal = st.text_input("Goal grade", placeholder="e.g. A- or 90", key="final_goal")
    with remaining_col:
        remaining_weight = st.text_input("Weight of remaining tasks", placeholder="e.g. 55", key="remaining_weight")

    calc_col, clear_col = st.columns(2)
    with calc_col:
        submitted = st.form_submit_button("Calculate", type="primary")
    with clear_col:
        cleared = st.form_submit_button("Clear grades")


if cleared:
    drop_pending_save("grade")
    for key in ("grade_summary", "entries_df", "entries_csv", "final_goal", "remaining_weight"):
        st.session_state.pop(key, None)
    st.rerun()

if submitted:
    st.session_state.pop("grade_summary", None)
    drop_pending_save("grade")
    if entries_csv is not None and upload_error:
        st.warning("Please fix the CSV upload error above (or remove the upload) and try again.")
    else:
        try:
            summary = grade_summary(
                entries_from_frame(entries_df),
                settings,
                goal_token=final_goal,
                remaining_weight_token=remaining_weight,
            )
        except GradeCalcError as e:
            st.error(str(e))
        else:
            st.session_state["grade_summary"] = summary


if "grade_summary" in st.session_state:
    summary = st.session_state["grade_summary"]

    st.markdown("---")
    st.subheader("Your grade")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Weighted average", f"{summary['average']:.1f}")
    with col2:
        st.metric("Letter grade", summary["letter"])
    with col3:
        st.metric("Total weight", f"{summary['total_weight']:g}")

    if summary["goal_warning"]:
        st.warning(summary["goal_warning"])
    elif summary["goal"] is not None:
        st.info(f"You need {summary['goal_required_rounded']:.1f} on the remaining tasks to reach your goal.")

    used = pd.DataFrame([tuple(e) for e in summary["entries"]], columns=["Assignment", "Grade", "Weight"])
    st.dataframe(used, use_container_width=True, hide_index=True)

    st.download_button(
        "Download rows as CSV",
        data=entries_to_csv(summary["entries"]),
        file_name="grades.csv",
        mime="text/csv",
    )

    if st.button("Save this result", key="save_grade"):
        st.session_state["pending_save"] = {
            "type": "grade",
            "data": {
                "letter": summary["letter"],
                "average": summary["average"],
                "rows": [e._asdict() for e in summary["entries"]],
            },
        }


# ------------------------
# Final exam calculator
# ------------------------

st.markdown("---")

with st.form("final_exam_form"):
    st.subheader("Final exam calculator")

    c1, c2, c3 = st.columns(3)
    with c1:
        current_grade = st.text_input("Current grade (%)", placeholder="e.g. 85", key="current_grade")
    with c2:
        desired_grade = st.text_input("Desired grade (%)", placeholder="e.g. 90", key="desired_grade")
    with c3:
        final_weight = st.text_input("Final exam weight (%)", placeholder="e.g. 30", key="final_weight")

    calc_col, clear_col = st.columns(2)
    with calc_col:
        final_submitted = st.form_submit_button("Calculate required score", type="primary")
    with clear_col:
        final_cleared = st.form_submit_button("Clear final exam")


if final_cleared:
    drop_pending_save("final")
    for key in ("final_summary", "current_grade", "desired_grade", "final_weight"):
        st.session_state.pop(key, None)
    st.rerun()

if final_submitted:
    st.session_state.pop("final_summary", None)
    drop_pending_save("final")
    current = parse_number(current_grade)
    desired = parse_number(desired_grade)
    weight = parse_number(final_weight)

    if current is None or desired is None or weight is None:
        st.error("Please fill in all fields with valid numbers.")
    else:
        try:
            st.session_state["final_summary"] = final_exam_summary(current, desired, weight)
        except GradeCalcError as e:
            st.error(str(e))


if "final_summary" in st.session_state:
    final_summary = st.session_state["final_summary"]

    st.metric("Required score on the final", f"{final_summary['required_grade']:.1f}%")
    if final_summary["advisory"]:
        st.info(final_summary["advisory"])

    if st.button("Save this result", key="save_final"):
        st.session_state["pending_save"] = {
            "type": "final",
            "data": {"required_grade": final_summary["required_grade"]},
        }


# ------------------------
# Saving
# ------------------------

store = CalculationStore(st.session_state)

st.markdown("---")
st.subheader("Saved calculations")
st.caption(
    f"Each account can save up to {MAX_SAVED_CALCULATIONS} calculations. "
    "Saved calculations only live in this browser session."
)
account_id = st.text_input("Account name", key="account_id")

if "pending_save" in st.session_state:
    pending = st.session_state["pending_save"]
    calc_kind = "Final Grade Calculator" if pending["type"] == "final" else "Grade Calculator"

    with st.form("save_form"):
        st.markdown(f"**Save result from the {calc_kind}**")
        calc_name = st.text_input("Calculation name", placeholder="Optional")
        calc_description = st.text_area("Description", placeholder="Optional")
        save_submitted = st.form_submit_button("Save")

    if save_submitted:
        try:
            saved = store.save(
                account_id,
                pending["type"],
                pending["data"],
                name=calc_name,
                description=calc_description,
            )
        except StorageError as e:
            st.error(str(e))
        else:
            del st.session_state["pending_save"]
            st.success(f"Saved \"{saved.name}\". You have {store.count(account_id)} saved calculations.")

if account_id.strip():
    saved_calcs = store.list(account_id)
    if not saved_calcs:
        st.info("No saved calculations for this account yet.")

    for calc in saved_calcs:
        calc_kind = "Final exam" if calc.type == "final" else "Grade"
        with st.expander(f"{calc.name} ({calc_kind}, {calc.created_at[:16].replace('T', ' ')} UTC)"):
            if calc.description:
                st.write(calc.description)
            st.json(calc.data)
            if st.button("Delete", key=f"delete_{calc.id}"):
                store.delete(account_id, calc.id)
                st.rerun()


st.header("FAQ")

st.subheader("How is the weighted average calculated?")
st.write(
    "Each grade is multiplied by its weight, the products are added up and divided by the total weight. "
    "Rows without both a grade and a weight are ignored. Letters are converted with the table below."
)
st.dataframe(
    pd.DataFrame(
        [(letter, GRADING_SCALE[letter], threshold) for threshold, letter in LETTER_BOUNDARIES],
        columns=["Letter", "Counts as", "Minimum average"],
    ),
    hide_index=True,
)

st.subheader("How is the required final exam score calculated?")
st.write(
    "Required = (desired − current × (1 − w)) / w, where w is the final exam weight as a fraction. "
    "A result above 100 means the goal is out of reach; a negative result means you already have it."
)

st.subheader("What data do you store?")
st.write(
    "Nothing leaves your browser session. Saved calculations are cleared when you refresh or close the page."
)

# To run:
# streamlit run app.py
