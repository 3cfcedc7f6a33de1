import os
import sqlite3
import json
from datetime import datetime
from typing import Dict, Any, List

def db_path() -> str:
    return os.environ.get("DECISION_AID_DB", "decision_aid.db")

def init_db():
    """Initialize database tables"""
    conn = sqlite3.connect(db_path())
    cursor = conn.cursor()

    # Uptake computations
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS uptake_runs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            experiment TEXT NOT NULL,
            inputs_json TEXT NOT NULL,
            outputs_json TEXT NOT NULL
        )
    ''')

    # Scenarios the user chose to save
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS saved_scenarios (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            name TEXT NOT NULL,
            row_json TEXT NOT NULL
        )
    ''')

    conn.commit()
    conn.close()

def log_uptake_run(experiment: str, inputs: Dict[str, Any], outputs: Dict[str, Any]):
    """Log an uptake computation to the database"""
    init_db()
    conn = sqlite3.connect(db_path())
    cursor = conn.cursor()

    cursor.execute('''
        INSERT INTO uptake_runs (timestamp, experiment, inputs_json, outputs_json)
        VALUES (?, ?, ?, ?)
    ''', (
        datetime.now().isoformat(),
        experiment,
        json.dumps(inputs),
        json.dumps(outputs)
    ))

    conn.commit()
    conn.close()

def log_saved_scenario(row: Dict[str, Any]):
    """Log a saved scenario export row to the database"""
    init_db()
    conn = sqlite3.connect(db_path())
    cursor = conn.cursor()

    cursor.execute('''
        INSERT INTO saved_scenarios (timestamp, name, row_json)
        VALUES (?, ?, ?)
    ''', (
        datetime.now().isoformat(),
        row["name"],
        json.dumps(row)
    ))

    conn.commit()
    conn.close()

def recent_uptake_runs(limit: int = 20) -> List[Dict[str, Any]]:
    init_db()
    conn = sqlite3.connect(db_path())
    cursor = conn.cursor()
    cursor.execute('''
        SELECT timestamp, experiment, inputs_json, outputs_json
        FROM uptake_runs ORDER BY id DESC LIMIT ?
    ''', (limit,))
    rows = [
        {"timestamp": ts, "experiment": exp, "inputs": json.loads(i), "outputs": json.loads(o)}
        for ts, exp, i, o in cursor.fetchall()
    ]
    conn.close()
    return rows
