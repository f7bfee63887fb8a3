import io
from typing import List, Sequence

import pandas as pd

from gradecalc.backend_logic import GradeEntry

COLUMNS = ["Assignment", "Grade", "Weight"]

_ALIASES = {
    "name": "assignment",
    "label": "assignment",
    "score": "grade",
    "credit": "weight",
    "credits": "weight",
}

# ------------------------
# CSV helpers (UI-side)
# ------------------------

def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    # first matching alias wins; later ones are left as extra columns
    renames = {}
    for c in df.columns:
        target = _ALIASES.get(c)
        if target and target not in df.columns and target not in renames.values():
            renames[c] = target
    if renames:
        df = df.rename(columns=renames)
    return df

def read_csv_upload(uploaded_file) -> pd.DataFrame:
    # keep tokens as text so "B+" and "07" survive untouched
    df = pd.read_csv(uploaded_file, dtype=str, keep_default_na=False)
    return _normalise_cols(df)

def validate_entries_csv(df: pd.DataFrame) -> pd.DataFrame:
    required = {"grade", "weight"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}. Expected: Assignment, Grade, Weight.")
    out = df.copy()
    if "assignment" not in out.columns:
        out["assignment"] = ""
    out = out[["assignment", "grade", "weight"]]
    out.columns = COLUMNS
    return out

def _token(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if pd.isna(value):
        return ""
    return str(value).strip()

def entries_from_frame(df: pd.DataFrame) -> List[GradeEntry]:
    rows = []
    for _, row in df.iterrows():
        rows.append(GradeEntry(
            assignment=_token(row.get("Assignment")),
            grade=_token(row.get("Grade")),
            weight=_token(row.get("Weight")),
        ))
    return rows

def entries_to_frame(entries: Sequence[GradeEntry]) -> pd.DataFrame:
    return pd.DataFrame([tuple(GradeEntry(*e)) for e in entries], columns=COLUMNS)

def entries_to_csv(entries: Sequence[GradeEntry]) -> bytes:
    buffer = io.StringIO()
    entries_to_frame(entries).to_csv(buffer, index=False)
    return buffer.getvalue().encode("utf-8")
