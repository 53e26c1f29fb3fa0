"""
Analysis table queries.

Each query is written once per engine; the active one is chosen from
`db.is_postgres`.
"""

from typing import Any, Dict, List, Optional

from database import db
from helpers.date_utils import _to_timestamp_str


def _sql(sqlite_sql: str, postgres_sql: str) -> str:
    return postgres_sql if db.is_postgres else sqlite_sql


def _row_to_record(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return {
        "id": row.get("id"),
        "analysis_summary": row.get("analysis_summary"),
        "content_text": row.get("content_text"),
        "created_at": _to_timestamp_str(row.get("created_at")),
        "updated_at": _to_timestamp_str(row.get("updated_at")),
    }


def insert_analysis(analysis_summary: str, content_text: str) -> Optional[int]:
    """Insert a record and return its id."""
    sql = _sql(
        "INSERT INTO analyses (analysis_summary, content_text) VALUES (?, ?)",
        "INSERT INTO analyses (analysis_summary, content_text) VALUES (%s, %s) RETURNING id",
    )
    result = db.run(sql, [analysis_summary, content_text])
    return result["lastID"]


def list_analyses() -> List[Dict[str, Any]]:
    rows = db.all("SELECT * FROM analyses ORDER BY created_at DESC, id DESC")
    return [_row_to_record(row) for row in rows]


def _escape_like(keyword: str) -> str:
    """Make %, _ and the escape character itself match literally."""
    return keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_analyses(keyword: str) -> List[Dict[str, Any]]:
    """Case-insensitive substring match on summary or content."""
    sql = _sql(
        "SELECT * FROM analyses WHERE analysis_summary LIKE ? ESCAPE '\\' "
        "OR content_text LIKE ? ESCAPE '\\' "
        "ORDER BY created_at DESC, id DESC",
        "SELECT * FROM analyses WHERE analysis_summary ILIKE %s ESCAPE '\\' "
        "OR content_text ILIKE %s ESCAPE '\\' "
        "ORDER BY created_at DESC, id DESC",
    )
    pattern = f"%{_escape_like(keyword or '')}%"
    rows = db.all(sql, [pattern, pattern])
    return [_row_to_record(row) for row in rows]


def _to_id(analysis_id: Any) -> Optional[int]:
    """Integer id from a path or body value; None when it cannot name a row."""
    if isinstance(analysis_id, bool):
        return None
    if isinstance(analysis_id, int):
        return analysis_id
    if isinstance(analysis_id, str):
        try:
            return int(analysis_id.strip())
        except ValueError:
            return None
    return None


def get_analysis(analysis_id: Any) -> Optional[Dict[str, Any]]:
    record_id = _to_id(analysis_id)
    if record_id is None:
        return None
    sql = _sql(
        "SELECT * FROM analyses WHERE id = ?",
        "SELECT * FROM analyses WHERE id = %s",
    )
    return _row_to_record(db.get(sql, [record_id]))


def update_analysis(analysis_id: Any, analysis_summary: Optional[str], content_text: Optional[str]) -> int:
    """Overwrite both text columns and bump updated_at. Returns affected row count."""
    record_id = _to_id(analysis_id)
    if record_id is None:
        return 0
    sql = _sql(
        f"UPDATE analyses SET analysis_summary = ?, content_text = ?, updated_at = {db.now_sql} WHERE id = ?",
        f"UPDATE analyses SET analysis_summary = %s, content_text = %s, updated_at = {db.now_sql} WHERE id = %s",
    )
    result = db.run(sql, [analysis_summary, content_text, record_id])
    return result["changes"]


def delete_analysis(analysis_id: Any) -> int:
    record_id = _to_id(analysis_id)
    if record_id is None:
        return 0
    sql = _sql(
        "DELETE FROM analyses WHERE id = ?",
        "DELETE FROM analyses WHERE id = %s",
    )
    result = db.run(sql, [record_id])
    return result["changes"]
