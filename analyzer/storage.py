import sqlite3
from typing import Optional, Tuple

from analyzer.config import DB_PATH
from analyzer.schemas import AnalyzeResponse, ContractAnalysis


def _connect(db_path: str = None):
    return sqlite3.connect(db_path or DB_PATH)


def init_db(db_path: str = None):
    conn = _connect(db_path)
    cur = conn.cursor()

    cur.execute("""
    CREATE TABLE IF NOT EXISTS analyses (
        contract_id TEXT PRIMARY KEY,
        contract_text TEXT,
        analysis_json TEXT,
        metrics_json TEXT,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS preferences (
        key TEXT PRIMARY KEY,
        value TEXT
    )
    """)

    conn.commit()
    conn.close()


def save_analysis(contract_id: str, contract_text: str, response: AnalyzeResponse, db_path: str = None):
    """Store the latest analysis for a contract, replacing any previous one."""
    metrics = response.model_dump_json(exclude={"analysis"})
    conn = _connect(db_path)
    cur = conn.cursor()
    cur.execute("""
        INSERT OR REPLACE INTO analyses (contract_id, contract_text, analysis_json, metrics_json, updated_at)
        VALUES (?, ?, ?, ?, strftime('%Y-%m-%d %H:%M:%f', 'now'))
    """, (contract_id, contract_text, response.analysis.model_dump_json(), metrics))
    conn.commit()
    conn.close()


def load_analysis(contract_id: str, db_path: str = None) -> Optional[Tuple[str, ContractAnalysis]]:
    conn = _connect(db_path)
    cur = conn.cursor()
    cur.execute("SELECT contract_text, analysis_json FROM analyses WHERE contract_id = ?", (contract_id,))
    row = cur.fetchone()
    conn.close()
    if not row:
        return None
    return row[0], ContractAnalysis.model_validate_json(row[1])


def load_last_analysis(db_path: str = None) -> Optional[Tuple[str, str, ContractAnalysis]]:
    """Most recently saved (contract_id, contract_text, analysis), if any."""
    conn = _connect(db_path)
    cur = conn.cursor()
    cur.execute("SELECT contract_id, contract_text, analysis_json FROM analyses ORDER BY updated_at DESC, rowid DESC LIMIT 1")
    row = cur.fetchone()
    conn.close()
    if not row:
        return None
    return row[0], row[1], ContractAnalysis.model_validate_json(row[2])


def set_preference(key: str, value: str, db_path: str = None):
    conn = _connect(db_path)
    cur = conn.cursor()
    cur.execute("INSERT OR REPLACE INTO preferences (key, value) VALUES (?, ?)", (key, value))
    conn.commit()
    conn.close()


def get_preference(key: str, default: str = None, db_path: str = None) -> Optional[str]:
    conn = _connect(db_path)
    cur = conn.cursor()
    cur.execute("SELECT value FROM preferences WHERE key = ?", (key,))
    row = cur.fetchone()
    conn.close()
    return row[0] if row else default
